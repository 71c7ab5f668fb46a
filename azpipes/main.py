"""azpipes application entry point."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from azpipes.actions.registry import ActionRegistry
from azpipes.config import AppConfig, load_config
from azpipes.integrations import CredentialsProvider
from azpipes.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from azpipes.module import register_actions

load_dotenv()

logger = logging.getLogger("azpipes")


def _setup_logging(config: AppConfig):
    log_dir = Path(config.logging.dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.handlers.RotatingFileHandler(
                log_dir / "azpipes.log", maxBytes=10_000_000, backupCount=5
            ),
        ],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    _setup_logging(app.state.config)
    logger.info("azpipes ready with actions: %s", app.state.actions.list_actions())
    yield
    logger.info("azpipes shutdown complete")


def create_app(
    config_path: str = "azpipes.yaml",
    config: AppConfig | None = None,
    credentials: CredentialsProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    config = config or load_config(config_path)

    app = FastAPI(title="azpipes", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.actions = register_actions(ActionRegistry(), config, credentials, transport)

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "actions": app.state.actions.list_actions()}

    from azpipes.api.actions import router as actions_router

    app.include_router(actions_router)

    # ASGI middleware (added last = runs first)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)

    return app


def cli():
    parser = argparse.ArgumentParser(
        prog="azpipes", description="Azure Pipelines scaffolder actions"
    )
    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Start the action server")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")
    serve_parser.add_argument("--config", default="azpipes.yaml")

    args = parser.parse_args()

    if args.command == "serve":
        config = load_config(args.config)
        host = args.host or config.server.host
        port = args.port or config.server.port
        uvicorn.run(
            "azpipes.main:create_app",
            factory=True,
            host=host,
            port=port,
            reload=args.reload or config.server.reload,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    cli()
