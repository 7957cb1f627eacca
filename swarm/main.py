"""FastAPI entry-point exposing the agent swarm."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swarm.api.chat import router as chat_router
from swarm.api.routes import router as agents_router
from swarm.api.tasks import router as tasks_router
from swarm.config import Config
from swarm.core.errors import SwarmError
from swarm.observability.logging import get_logger, setup_logging
from swarm.runtime import Runtime, build_runtime

logger = get_logger(__name__)


async def swarm_error_handler(request: Request, exc: SwarmError) -> JSONResponse:
    logger.info("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """Build the application; without ``runtime`` one is assembled from the environment."""
    if runtime is None:
        config = Config.from_env()
        setup_logging(config.log_level, config.log_format)
        runtime = build_runtime(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await runtime.start()
        yield
        await runtime.stop()

    app = FastAPI(title="Agent Swarm", lifespan=lifespan)
    app.state.runtime = runtime
    app.add_exception_handler(SwarmError, swarm_error_handler)
    app.include_router(agents_router)
    app.include_router(chat_router)
    app.include_router(tasks_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "agents": runtime.registry.list_agents()}

    return app


def serve() -> None:
    import uvicorn

    uvicorn.run(create_app(), host="127.0.0.1", port=8000)
