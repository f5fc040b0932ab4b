from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from datetime import timezone
from weekly_tracker.database import Base
from weekly_tracker.utils.dates import get_utc_now
import json


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored as UTC and always loaded timezone-aware.
    SQLite drops the offset, so naive values read back are taken as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Timesheet(Base):
    """One week's allocation for one user."""

    __tablename__ = "timesheets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    week_key = Column(String(50), nullable=False)
    # JSON-encoded list of entries, stored whole
    entries = Column(Text, nullable=False)
    submit_date = Column(UTCDateTime, nullable=False, default=get_utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "week_key", name="uq_user_week"),
    )

    def get_entries(self):
        return json.loads(self.entries)

    def to_dict(self):
        return {
            "weekKey": self.week_key,
            "entries": self.get_entries(),
            "submitDate": self.submit_date,
        }

    def __repr__(self):
        return f"<Timesheet(user={self.user_id}, week={self.week_key}, submitted={self.submit_date})>"
