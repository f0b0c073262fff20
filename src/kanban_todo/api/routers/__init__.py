"""Router aggregation.

Routes define their full paths themselves (the task endpoints carry their own
/api prefix), so everything is included without a prefix here.
"""

from fastapi import APIRouter

from kanban_todo.api.routers import auth, health, tasks, ui

router = APIRouter()

router.include_router(ui.router)
router.include_router(auth.router)
router.include_router(tasks.router)
router.include_router(health.router)

__all__ = ["router"]
