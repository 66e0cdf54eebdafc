"""FastAPI application factory for the TaskNest board server."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..board.errors import InvalidArgumentError, NotFoundError
from ..storage.container import TaskNestContainer
from .board_api import create_board_router


def create_app(
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        project_dir: Project directory holding `.tasknest/` (defaults to cwd).
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="TaskNest",
        description="Kanban boards with ordered columns, tasks and comments",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.container = TaskNestContainer(project_dir or Path.cwd())

    def _get_container() -> TaskNestContainer:
        return app.state.container

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidArgumentError)
    async def _invalid(request: Request, exc: InvalidArgumentError) -> JSONResponse:
        logger.info("Rejected {} {}: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.middleware("http")
    async def _report_unsaved(request: Request, call_next):
        response = await call_next(request)
        err = app.state.container.take_save_error()
        if err:
            return JSONResponse(status_code=503, content={"detail": err})
        return response

    @app.get("/")
    async def root():
        return {"name": "TaskNest", "version": __version__, "status": "running"}

    app.include_router(create_board_router(_get_container))
    return app
