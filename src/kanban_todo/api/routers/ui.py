"""UI routes for serving HTML pages."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from kanban_todo.api.dependencies import get_access_token, get_todo_service
from kanban_todo.api.routers._shared import templates
from kanban_todo.application.services.todo_service import TodoService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ui"])


@router.get("/", response_class=HTMLResponse)
async def home(request: Request) -> HTMLResponse:
    """Landing page with the sign-in button."""
    return templates.TemplateResponse(request, "home.html", context={})


@router.get("/todoLists", response_class=HTMLResponse)
async def todo_lists(
    request: Request,
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> HTMLResponse:
    """All To Do lists of the signed-in user."""
    lists = await todo_service.list_lists(access_token)
    return templates.TemplateResponse(
        request,
        "todoLists.html",
        context={"lists": lists},
    )


# Hey future me, the board URL is /list/<id>/ with a trailing slash (that's what the
# lists page links to). Anything after the id is ignored, both routes render the same board.
@router.get("/list/{list_id}", response_class=HTMLResponse)
@router.get("/list/{list_id}/{rest:path}", response_class=HTMLResponse)
async def board(
    request: Request,
    list_id: str,
    rest: str = "",
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> HTMLResponse:
    """Kanban board of one list."""
    board_view = await todo_service.build_board(access_token, list_id)
    return templates.TemplateResponse(
        request,
        "tasks.html",
        context={"board": board_view},
    )
