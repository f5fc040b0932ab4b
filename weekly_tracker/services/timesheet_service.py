from sqlalchemy.orm import Session
from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from weekly_tracker.models.timesheet import Timesheet
from weekly_tracker.utils.dates import get_utc_now
from typing import List, Dict, Any, Optional
import json
import logging

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The backing store could not complete an operation."""


def _upsert_insert(dialect_name: str):
    """Dialect insert() supporting ON CONFLICT, or None if unavailable."""
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    return None


class TimesheetService:
    """
    Weekly records keyed by (user_id, week_key).

    Every call is scoped to the given user. Reads never raise for a missing
    record; any database failure is rolled back and re-raised as StoreError.
    """

    @staticmethod
    def get_all(db: Session, user_id: str) -> Dict[str, List[Dict[str, Any]]]:
        """Map of week key to entries, built from the newest submission down."""
        try:
            rows = db.execute(
                select(Timesheet)
                .where(Timesheet.user_id == user_id)
                .order_by(desc(Timesheet.submit_date), desc(Timesheet.id))
            ).scalars().all()
            timesheets = {row.week_key: row.get_entries() for row in rows}
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Error getting timesheets for user {user_id}: {str(e)}")
            db.rollback()
            raise StoreError("Failed to load timesheets") from e

        logger.info(f"Retrieved {len(rows)} timesheets for user {user_id}")
        return timesheets

    @staticmethod
    def get_week(db: Session, user_id: str, week_key: str) -> Optional[Dict[str, Any]]:
        try:
            row = db.execute(
                select(Timesheet).where(
                    Timesheet.user_id == user_id,
                    Timesheet.week_key == week_key
                )
            ).scalar_one_or_none()
            record = row.to_dict() if row is not None else None
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Error getting timesheet {week_key} for user {user_id}: {str(e)}")
            db.rollback()
            raise StoreError("Failed to load timesheet") from e

        return record

    @staticmethod
    def save(db: Session, user_id: str, week_key: str, entries: List[Dict[str, Any]]) -> bool:
        """
        Insert the week or overwrite its entries, refreshing submit_date.

        Runs as one INSERT ... ON CONFLICT DO UPDATE where the dialect has it,
        otherwise as lookup-then-write inside a single transaction. Concurrent
        saves of the same week are last-write-wins.
        """
        entries_json = json.dumps(entries)
        now = get_utc_now()
        logger.info(f"💾 Saving {len(entries)} entries for {week_key} (user {user_id})")

        try:
            insert = _upsert_insert(db.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(Timesheet).values(
                    user_id=user_id,
                    week_key=week_key,
                    entries=entries_json,
                    submit_date=now
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[Timesheet.user_id, Timesheet.week_key],
                    set_={"entries": stmt.excluded.entries, "submit_date": stmt.excluded.submit_date}
                )
                db.execute(stmt)
            else:
                existing = db.execute(
                    select(Timesheet).where(
                        Timesheet.user_id == user_id,
                        Timesheet.week_key == week_key
                    ).with_for_update()
                ).scalar_one_or_none()
                if existing:
                    existing.entries = entries_json
                    existing.submit_date = now
                else:
                    db.add(Timesheet(
                        user_id=user_id,
                        week_key=week_key,
                        entries=entries_json,
                        submit_date=now
                    ))
            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"❌ Error saving timesheet {week_key} for user {user_id}: {str(e)}")
            db.rollback()
            raise StoreError("Failed to save timesheet") from e

        logger.info(f"✅ Saved timesheet {week_key} for user {user_id}")
        return True

    @staticmethod
    def delete(db: Session, user_id: str, week_key: str) -> bool:
        """Delete the week. False means there was nothing to delete."""
        logger.info(f"🗑️ Deleting timesheet {week_key} for user {user_id}")

        try:
            result = db.execute(
                delete(Timesheet).where(
                    Timesheet.user_id == user_id,
                    Timesheet.week_key == week_key
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"❌ Error deleting timesheet {week_key} for user {user_id}: {str(e)}")
            db.rollback()
            raise StoreError("Failed to delete timesheet") from e

        deleted = result.rowcount > 0
        if not deleted:
            logger.info(f"Timesheet {week_key} not found for user {user_id}")
        return deleted
