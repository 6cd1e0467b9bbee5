"""FastAPI entrypoint for the Markdown TODO service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import configure_logging, load_config
from app.errors import ErrorResponse, TodoError, error_response, status_code_for
from app.todo import register_todo_handlers
from app.user_scope import (
    AUTH_EXEMPT_PATHS,
    SERVICE_TOKEN_HEADER,
    USER_ID_HEADER,
    normalize_user_id,
)

log = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = load_config()
        configure_logging(config)
        app.state.config = config
        app.state.data_path = config.data_path
        log.info("Serving TODO documents from %s", config.data_path)
        yield

    app = FastAPI(lifespan=lifespan)

    @app.middleware("http")
    async def enforce_request_identity(request: Request, call_next):
        path = request.url.path
        if path in AUTH_EXEMPT_PATHS:
            return await call_next(request)

        config = getattr(request.app.state, "config", None)
        service_token = getattr(config, "service_token", None)
        if service_token:
            supplied_token = request.headers.get(SERVICE_TOKEN_HEADER)
            if supplied_token != service_token:
                error = ErrorResponse(
                    code="AUTH_FORBIDDEN",
                    message="Invalid service token.",
                    details={"header": SERVICE_TOKEN_HEADER},
                )
                return JSONResponse(
                    status_code=status_code_for(error), content=error_response(error)
                )

        # Anonymous requests pass through; write endpoints decide whether
        # they may fall back to the demo document.
        raw_user_id = request.headers.get(USER_ID_HEADER)
        if raw_user_id is not None:
            try:
                request.state.user_id = normalize_user_id(raw_user_id)
            except TodoError as exc:
                return JSONResponse(
                    status_code=status_code_for(exc.error),
                    content=error_response(exc.error),
                )

        return await call_next(request)

    @app.exception_handler(TodoError)
    def handle_todo_error(request: Request, exc: TodoError) -> JSONResponse:
        return JSONResponse(
            status_code=status_code_for(exc.error), content=error_response(exc.error)
        )

    @app.get("/health", status_code=200)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    register_todo_handlers(app)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    host = os.environ.get("TODO_HOST", "127.0.0.1")
    port = int(os.environ.get("TODO_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
