import logging
import logging.handlers
import time
from datetime import datetime
from pathlib import Path
from typing import Union


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'

# Component loggers that also get a file of their own
COMPONENT_LOG_FILES = {
    'weekly_tracker.services.timesheet_service': "timesheet_service.log",
    'weekly_tracker.routers.timesheet_router': "api.log",
}


def _rotating_handler(path: Path, level: int, max_mb: int, backups: int, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_mb*1024*1024,
        backupCount=backups,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: Union[str, Path] = "logs", log_level: str = "INFO") -> Path:
    """
    Configure logging for the tracker.
    Console output plus rotating files: app.log, errors.log and one file
    per component listed in COMPONENT_LOG_FILES.
    """

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_format = logging.Formatter(LOG_FORMAT)
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(log_format)
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(logs_dir / "app.log", level, 10, 5, log_format))

    for logger_name, filename in COMPONENT_LOG_FILES.items():
        component_logger = logging.getLogger(logger_name)
        for handler in list(component_logger.handlers):
            component_logger.removeHandler(handler)
            handler.close()
        component_logger.addHandler(_rotating_handler(logs_dir / filename, logging.DEBUG, 5, 3, log_format))
        component_logger.setLevel(logging.DEBUG)

    # Error-only log file for critical issues
    root_logger.addHandler(_rotating_handler(logs_dir / "errors.log", logging.ERROR, 5, 5, log_format))

    # Suppress noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configuration completed")
    logger.info(f"Log files will be saved to: {logs_dir.absolute()}")

    return logs_dir


def get_log_files_info(log_dir: Union[str, Path] = "logs"):
    """
    Get information about current log files for debugging.
    """
    logs_dir = Path(log_dir)
    if not logs_dir.exists():
        return {"status": "No logs directory found"}

    log_files = {}
    for log_file in logs_dir.glob("*.log"):
        try:
            stat = log_file.stat()
            log_files[log_file.name] = {
                "size_mb": round(stat.st_size / (1024*1024), 2),
                "modified": datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
            }
        except OSError as e:
            log_files[log_file.name] = {"error": str(e)}

    return log_files


def cleanup_old_logs(log_dir: Union[str, Path] = "logs", days_to_keep: int = 30):
    """
    Delete log files not modified within days_to_keep days.
    Returns the names of the removed files.
    """
    logs_dir = Path(log_dir)
    if not logs_dir.exists():
        return []

    cutoff_time = time.time() - (days_to_keep * 24 * 60 * 60)

    cleaned_files = []
    for log_file in logs_dir.glob("*.log*"):
        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                cleaned_files.append(log_file.name)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Failed to clean up {log_file}: {e}")

    if cleaned_files:
        logging.getLogger(__name__).info(f"Cleaned up old log files: {cleaned_files}")
    return cleaned_files
