"""Shared template configuration for the page routers.

Hey future me - the templates directory is computed relative to THIS file so it
works from the source tree and from site-packages alike. Path(__file__) is
api/routers/_shared.py, three .parent hops land in kanban_todo/.
"""

import logging
from pathlib import Path

from fastapi.templating import Jinja2Templates
from jinja2 import TemplateError

from kanban_todo.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent.parent.parent / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))

# Every page the app renders. Checked once at startup.
PAGE_TEMPLATES = ("home.html", "todoLists.html", "tasks.html")


def verify_templates() -> None:
    """Compile every page template once.

    Raises:
        ConfigurationError: If a template is missing or does not compile
    """
    for name in PAGE_TEMPLATES:
        try:
            templates.get_template(name)
        except TemplateError as e:
            raise ConfigurationError(f"Error loading template {name}: {e}") from e
    logger.debug("Templates loaded from %s", _TEMPLATES_DIR)
