from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
from weekly_tracker.routers import timesheet_router
from weekly_tracker.database import Database
from weekly_tracker.services.timesheet_service import StoreError
from weekly_tracker.utils.scheduler import TaskScheduler
from weekly_tracker.utils.logging_config import setup_logging, get_log_files_info
from weekly_tracker.config import Settings, get_settings
import logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = get_settings()

    logs_dir = setup_logging(settings.log_dir, settings.log_level)
    database = Database(settings.database_url)
    scheduler = TaskScheduler(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting Weekly Percentage Tracker...")
        database.init_db()
        app.state.database = database
        if settings.scheduler_enabled:
            scheduler.start()
        logger.info("Application started successfully")

        yield

        # Shutdown
        logger.info("Shutting down...")
        scheduler.stop()
        database.close()
        logger.info("Application stopped")

    app = FastAPI(
        title="Weekly Percentage Tracker",
        description="Split each work week across projects by percentage",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.database = database
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        # Details are in the logs; callers get a generic message
        logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning(f"Invalid request body on {request.method} {request.url.path}: {errors}")
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid request body: {location} {first.get('msg', '')}".strip()
        else:
            message = "Invalid request body"
        return JSONResponse(status_code=400, content={"error": message})

    app.include_router(timesheet_router.router)

    @app.get("/")
    async def root():
        return {
            "message": "Weekly Percentage Tracker API",
            "status": "running",
            "version": VERSION
        }

    @app.get("/health")
    def health_check():
        try:
            with database.session() as db:
                db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {str(e)}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "database": "unreachable"}
            )
        return {
            "status": "healthy",
            "database": "connected",
            "scheduler": "running" if scheduler.scheduler.running else "stopped"
        }

    @app.get("/logs/info")
    async def logs_info():
        """Get information about current log files."""
        return {
            "logs_directory": str(logs_dir.absolute()),
            "log_files": get_log_files_info(logs_dir)
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
