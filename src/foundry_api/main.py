"""Plugin Foundry - plugin administration control plane.

Main FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from foundry import __version__
from foundry.auth import StaticIdentityProvider
from foundry.cicd import BuildTool, DeploymentHistory, DeploymentPipeline
from foundry.errors import FoundryError, MalformedRequestError, ValidationError
from foundry.plugins import PluginLifecycleController
from foundry_api.assets import AssetLoader
from foundry_api.config import Settings, settings as default_settings
from foundry_api.database import init_db, make_engine, make_session_factory
from foundry_api.routers import admin_router
from foundry_api.stores import DatabasePluginRegistry, SqlRecordStore


# ---------------------------------------------------------------------------
# Subsystem wiring
# ---------------------------------------------------------------------------

def _wire_services(app: FastAPI, cfg: Settings, session_factory) -> None:
    """Attach registry, history, pipeline and friends to app.state."""
    registry = DatabasePluginRegistry(session_factory)
    history = DeploymentHistory(SqlRecordStore(session_factory))

    app.state.registry = registry
    app.state.history = history
    app.state.controller = PluginLifecycleController(registry)
    app.state.identity = StaticIdentityProvider(cfg.users, cfg.admin_users)
    app.state.assets = AssetLoader(cfg.admin_ui_dir)
    app.state.pipeline = DeploymentPipeline(
        history,
        workspace_root=cfg.workspace_root,
        admin_prefix=cfg.admin_prefix,
        tool=BuildTool(
            git_executable=cfg.git_executable,
            build_executable=cfg.build_executable,
            property_prefix=cfg.build_property_prefix,
        ),
        timeout=cfg.build_timeout,
    )


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------

async def foundry_error_handler(request: Request, exc: FoundryError) -> JSONResponse:
    """Render a FoundryError with its status code.

    A ValidationError echoes the offending request back; everything else
    answers ``{"detail": message}``.
    """
    if isinstance(exc, ValidationError) and exc.payload is not None:
        content = exc.payload.to_json_dict()
    else:
        content = {"detail": exc.message}
    return JSONResponse(status_code=exc.status_code, content=content)


async def unsupported_method_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer verbs that no route accepts with 400 rather than 405."""
    return await foundry_error_handler(
        request, MalformedRequestError(f"Unsupported method: {request.method}"),
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("=" * 60)
        logger.info(f"  {cfg.app_name} v{__version__} - INITIALIZING")
        logger.info("=" * 60)

        engine = make_engine(cfg.database_url, echo=cfg.debug)
        logger.info("Initializing database...")
        await init_db(engine)
        logger.info("Database initialized")

        _wire_services(app, cfg, make_session_factory(engine))

        if not cfg.admin_users:
            logger.warning("No admin users configured; admin endpoints will answer 401")
        if not cfg.admin_ui_dir.exists():
            logger.warning(f"Admin UI directory not found: {cfg.admin_ui_dir}")

        logger.info(f"Admin API mounted at {cfg.admin_prefix}")
        logger.info(f"  {cfg.app_name} ONLINE")

        yield

        logger.info(f"{cfg.app_name} shutting down...")
        await engine.dispose()

    app = FastAPI(
        title="Plugin Foundry",
        description="Plugin administration and deployment control plane",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(FoundryError, foundry_error_handler)
    app.add_exception_handler(405, unsupported_method_handler)
    app.include_router(admin_router, prefix=cfg.admin_prefix)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "operational",
            "version": __version__,
            "system": cfg.app_name,
        }

    return app


app = create_app()
