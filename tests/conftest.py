import os
import tempfile

# Importing weekly_tracker.main builds the default app; keep it off disk
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="weekly-tracker-logs-"))
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from weekly_tracker.config import Settings
from weekly_tracker.database import Database
from weekly_tracker.main import create_app


USER = "jane@example.com"
WEEK = "1/6/2025 - 1/12/2025"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'timesheets.db'}",
        default_user_id=USER,
        log_dir=str(tmp_path / "logs"),
        scheduler_enabled=False,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def database():
    """In-memory store with the schema created."""
    db = Database("sqlite://")
    db.init_db()
    yield db
    db.close()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


def make_entries(*pairs):
    """[("A", "40"), ...] -> entry dicts with ids 1..n."""
    return [
        {"id": i, "projectId": project, "percentage": percentage}
        for i, (project, percentage) in enumerate(pairs, start=1)
    ]
