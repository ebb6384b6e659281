"""Persisted progress store backed by a single serialized record."""
import json
import logging
from datetime import UTC, datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from spellsan.config import settings
from spellsan.models.models import ProgressSnapshot
from spellsan.models.progress_models import ProgressRecord, local_now, sessions_on
from spellsan.monitoring import store_errors, store_operations

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressRecord], None]


class ProgressStore:
    """Loads, saves and resets the progress record stored under one key."""

    def __init__(
        self,
        session_factory: sessionmaker,
        storage_key: Optional[str] = None,
        version: Optional[str] = None,
    ):
        """Initialize the store with a database session factory."""
        self.session_factory = session_factory
        self.storage_key = storage_key or settings.storage.storage_key
        self.version = version or settings.storage.version
        self._listeners: List[ProgressListener] = []

    def subscribe(self, listener: ProgressListener) -> None:
        """Register a callback invoked with the record after every successful save."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ProgressListener) -> None:
        """Remove a previously registered callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def load(self) -> ProgressRecord:
        """Load the stored record merged over defaults; fall back to defaults on any error."""
        store_operations.labels(operation_type="load").inc()
        try:
            with self.session_factory() as db:
                snapshot = (
                    db.query(ProgressSnapshot)
                    .filter(ProgressSnapshot.storage_key == self.storage_key)
                    .first()
                )
                payload = snapshot.payload if snapshot else None
            if payload is None:
                return ProgressRecord()
            data = json.loads(payload)
            if data.get("version") not in (None, self.version):
                logger.info(f"Migrating progress from version {data.get('version')} to {self.version}")
            record = ProgressRecord.from_dict(data)
        except (SQLAlchemyError, ValueError, TypeError, AttributeError) as e:
            store_errors.labels(operation_type="load").inc()
            logger.error(f"Error loading progress for {self.storage_key}: {e}", exc_info=True)
            return ProgressRecord()

        record.practice_today = sessions_on(record.session_history, local_now().date())
        return record

    def save(self, record: ProgressRecord) -> bool:
        """Persist the full record in one transaction and notify listeners."""
        store_operations.labels(operation_type="save").inc()
        saved_at = datetime.now(UTC)
        document = record.to_dict()
        document["version"] = self.version
        document["lastSaved"] = saved_at.isoformat()

        db = self.session_factory()
        try:
            snapshot = (
                db.query(ProgressSnapshot)
                .filter(ProgressSnapshot.storage_key == self.storage_key)
                .first()
            )
            if snapshot is None:
                snapshot = ProgressSnapshot(storage_key=self.storage_key)
                db.add(snapshot)
            snapshot.version = self.version
            snapshot.payload = json.dumps(document)
            snapshot.saved_at = saved_at
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            store_errors.labels(operation_type="save").inc()
            logger.error(f"Error saving progress for {self.storage_key}: {e}", exc_info=True)
            return False
        finally:
            db.close()

        self._notify(record)
        return True

    def reset(self) -> bool:
        """Delete all stored progress so the next load returns defaults."""
        store_operations.labels(operation_type="reset").inc()
        db = self.session_factory()
        try:
            db.query(ProgressSnapshot).filter(
                ProgressSnapshot.storage_key == self.storage_key
            ).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            store_errors.labels(operation_type="reset").inc()
            logger.error(f"Error resetting progress for {self.storage_key}: {e}", exc_info=True)
            return False
        finally:
            db.close()

        logger.info(f"Progress reset for {self.storage_key}")
        self._notify(ProgressRecord())
        return True

    def _notify(self, record: ProgressRecord) -> None:
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                logger.exception(f"Progress listener {listener!r} failed")
