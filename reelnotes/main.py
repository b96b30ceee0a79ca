"""API entry point - FastAPI application for the ReelNotes backend."""

import logging
import logging.config
from contextlib import asynccontextmanager

from pythonjsonlogger import jsonlogger


# A custom formatter to produce JSON logs
class JsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname.lower()
        log_record["name"] = record.name
        log_record["service"] = "reelnotes"


def setup_logging():
    """
    Set up structured JSON logging for the entire application.
    The root logger is configured here; Alembic, Uvicorn and Gunicorn loggers
    are routed through the same JSON handler.
    """
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {
            "json_handler": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "handlers": ["json_handler"],
            "level": "INFO",
        },
        "loggers": {
            "alembic": {
                "handlers": ["json_handler"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn": {
                "handlers": ["json_handler"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["json_handler"],
                "level": "INFO",
                "propagate": False,
            },
            "gunicorn": {
                "handlers": ["json_handler"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(log_config)


# Set up logging immediately when the module is imported, BEFORE any other imports
setup_logging()

from fastapi import FastAPI  # noqa: E402

from reelnotes.api.comment_controller import router as comment_router  # noqa: E402
from reelnotes.api.errors import register_exception_handlers  # noqa: E402
from reelnotes.api.file_controller import router as file_router  # noqa: E402
from reelnotes.api.functions_controller import (  # noqa: E402
    router as functions_router,
)
from reelnotes.api.project_controller import router as project_router  # noqa: E402
from reelnotes.api.session_controller import router as session_router  # noqa: E402
from reelnotes.api.session_controller import users_router  # noqa: E402
from reelnotes.api.shared_controller import router as shared_router  # noqa: E402
from reelnotes.config.redis_config import get_redis_url  # noqa: E402
from reelnotes.config.settings import (  # noqa: E402
    REDIS_ENABLED,
    RUN_MIGRATIONS,
    get_public_base_url,
    get_storage_root,
)
from reelnotes.database.migrations import run_migrations  # noqa: E402
from reelnotes.services.change_bus import (  # noqa: E402
    InMemoryChangeBus,
    RedisChangeBus,
)
from reelnotes.services.job_producer import JobProducer  # noqa: E402
from reelnotes.services.storage_service import LocalBlobStorage  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application lifespan events."""
    logger.info("API SERVICE STARTUP")

    if RUN_MIGRATIONS:
        logger.info("Running migrations...")
        run_migrations()

    if REDIS_ENABLED:
        try:
            bus = RedisChangeBus(get_redis_url())
            await bus.connect()
            job_producer = JobProducer()
            await job_producer.initialize()
        except Exception as e:
            logger.error(f"Error during startup: {e}", exc_info=True)
            raise
        app.state.change_bus = bus
        app.state.job_producer = job_producer
        logger.info("Redis change bus and job producer ready")
    else:
        logger.info("Redis disabled; using in-process change bus and cleanup")

    logger.info("API SERVICE STARTUP COMPLETE")

    yield

    logger.info("API SERVICE SHUTTING DOWN...")
    await app.state.change_bus.close()
    if app.state.job_producer is not None:
        await app.state.job_producer.close()
    logger.info("API SERVICE SHUTDOWN COMPLETE")


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="ReelNotes - Video Feedback API",
        description="Timestamped comments and annotations on shared videos",
        version="1.0.0",
        lifespan=lifespan,
    )

    # In-process defaults; the lifespan swaps in Redis-backed components
    app.state.change_bus = InMemoryChangeBus()
    app.state.job_producer = None
    app.state.storage = LocalBlobStorage(get_storage_root(), get_public_base_url())

    register_exception_handlers(app)

    app.include_router(session_router, prefix="/v1")
    app.include_router(users_router, prefix="/v1")
    app.include_router(project_router, prefix="/v1")
    app.include_router(comment_router, prefix="/v1")
    app.include_router(shared_router, prefix="/v1")
    app.include_router(functions_router, prefix="/v1")
    app.include_router(file_router, prefix="/v1")
    logger.info("Routers included successfully")

    return app


app = create_app()


@app.get("/")
async def root():
    """Hello world endpoint."""
    return {"message": "ReelNotes API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "api"}
