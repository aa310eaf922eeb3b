"""Snapshot store for the metric collection.

The whole metric list is persisted as one JSON document under a single key
and overwritten on every save. Loading is forgiving: a missing, unreadable or
structurally invalid snapshot, or one naming a metric twice, yields an
empty collection instead of an error.
"""

from __future__ import annotations

import json
import logging
from typing import Sequence

from labtrend.core.storage.database import DatabaseError, SnapshotDatabase
from labtrend.core.storage.encryption import EncryptionError, SnapshotEncryptor
from labtrend.domains.health.domain_logic.metric_models import Metric

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "health_metrics"


class PersistenceError(Exception):
    """Raised when the snapshot cannot be written."""


class MetricStore:
    """Whole-snapshot persistence for the metric list.

    When an encryptor is given the snapshot is stored as a Fernet token;
    otherwise as plain JSON.

    Usage::

        db = SnapshotDatabase(":memory:")
        db.initialize()
        store = MetricStore(db, SnapshotEncryptor(key))

        metrics = store.load()
        store.save(metrics)
    """

    def __init__(
        self,
        database: SnapshotDatabase,
        encryptor: SnapshotEncryptor | None = None,
        *,
        key: str = DEFAULT_SNAPSHOT_KEY,
    ) -> None:
        self._db = database
        self._enc = encryptor
        self._key = key

    @property
    def encrypted(self) -> bool:
        return self._enc is not None

    def load(self) -> list[Metric]:
        """Load the persisted metric list.

        Returns:
            Metrics in persisted order, or an empty list when nothing is
            stored or the snapshot is corrupt.
        """
        try:
            row = self._db.read_snapshot(self._key)
        except DatabaseError as exc:
            logger.warning("Could not read snapshot %r: %s", self._key, exc)
            return []

        if row is None:
            return []

        try:
            raw = self._decode(row.payload, row.encrypted)
            if not isinstance(raw, list):
                raise TypeError(f"snapshot must be a list, got {type(raw).__name__}")
            metrics = [Metric.from_dict(item) for item in raw]
            names = [m.name for m in metrics]
            if len(set(names)) != len(names):
                raise ValueError("snapshot holds more than one metric with the same name")
        except (EncryptionError, KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "Snapshot %r is corrupt (%s: %s); starting from an empty store",
                self._key,
                type(exc).__name__,
                exc,
            )
            return []

        logger.info("Loaded %d metric(s) from snapshot %r", len(metrics), self._key)
        return metrics

    def save(self, metrics: Sequence[Metric]) -> None:
        """Replace the persisted snapshot with ``metrics``.

        The write is a single-row upsert committed in one transaction, so a
        concurrent reader sees either the previous or the new snapshot.

        Raises:
            PersistenceError: If serialization or the write fails.
        """
        payload = [m.to_dict() for m in metrics]
        try:
            if self._enc is not None:
                encoded = self._enc.encrypt(payload)
            else:
                encoded = json.dumps(payload, separators=(",", ":"))
        except (EncryptionError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not serialize snapshot: {exc}") from exc

        try:
            self._db.write_snapshot(self._key, encoded, encrypted=self._enc is not None)
        except DatabaseError as exc:
            raise PersistenceError(str(exc)) from exc

        logger.info("Saved snapshot %r (%d metrics)", self._key, len(metrics))

    def _decode(self, payload: str, encrypted: bool) -> object:
        if encrypted:
            if self._enc is None:
                raise EncryptionError("snapshot is encrypted but no key is configured")
            return self._enc.decrypt(payload)
        return json.loads(payload)
