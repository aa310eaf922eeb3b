"""Health tracker session — the single owner of the current metric list.

Every mutation follows the same steps: compute the next list with a pure
domain function, swap it in, persist the whole snapshot, notify observers.
Collaborator calls (extraction, normalization, advice) are the only
suspension points; a second operation of the same kind started while one is
pending is rejected, while reads of the current metrics never wait.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterator, Sequence

from labtrend.core.llm.provider import ChatTurn
from labtrend.core.storage.metric_store import MetricStore, PersistenceError
from labtrend.domains.health.connectors.document_input import ExtractionInput
from labtrend.domains.health.domain_logic import history_editor, metric_view
from labtrend.domains.health.domain_logic.merge_engine import MergeResult, merge
from labtrend.domains.health.domain_logic.metric_models import Metric
from labtrend.domains.health.services.advisor import AdvisorService
from labtrend.domains.health.services.extraction import ExtractionService
from labtrend.domains.health.services.normalization import NormalizationService

logger = logging.getLogger(__name__)

MetricsObserver = Callable[[Sequence[Metric]], None]


class OperationInProgressError(RuntimeError):
    """Raised when an operation of the same kind is already running."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"An {kind} operation is already in progress")
        self.kind = kind


class HealthTracker:
    """Owns the metric list, its persistence and the advice conversation.

    Usage::

        tracker = HealthTracker(store, extraction, normalization, advisor)
        tracker.load()
        result = await tracker.import_document(ExtractionInput.from_text(text))
        tracker.delete_display_point(metric_id, display_index=0)
    """

    def __init__(
        self,
        store: MetricStore | None,
        extraction: ExtractionService,
        normalization: NormalizationService,
        advisor: AdvisorService,
    ) -> None:
        self._store = store
        self._extraction = extraction
        self._normalization = normalization
        self._advisor = advisor
        self._metrics: list[Metric] = []
        self._chat: list[ChatTurn] = []
        self._observers: list[MetricsObserver] = []
        self._busy_kinds: set[str] = set()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def metrics(self) -> tuple[Metric, ...]:
        return tuple(self._metrics)

    @property
    def chat_history(self) -> tuple[ChatTurn, ...]:
        return tuple(self._chat)

    @property
    def persistent(self) -> bool:
        return self._store is not None

    def get_metric(self, metric_id: str) -> Metric | None:
        return next((m for m in self._metrics if m.id == metric_id), None)

    def is_busy(self, kind: str) -> bool:
        return kind in self._busy_kinds

    def subscribe(self, observer: MetricsObserver) -> None:
        """Call ``observer`` with the new metric list after every mutation."""
        self._observers.append(observer)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> int:
        """Replace the in-memory list with the persisted snapshot."""
        if self._store is not None:
            self._metrics = self._store.load()
        return len(self._metrics)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def import_document(
        self,
        document: ExtractionInput,
        *,
        today: date | None = None,
    ) -> MergeResult:
        """Extract, normalize and merge one document.

        Raises:
            OperationInProgressError: If an import is already running.
            ExtractionError: If extraction fails. Nothing is merged.
            MalformedBatchError: If any extracted record is malformed.
                Nothing is merged.
        """
        with self._busy("import"):
            records = await self._extraction.extract(document)
            normalized = await self._normalization.normalize(records, self._metrics)
            # Merge against the list as it is now: deletions may have landed
            # while the collaborators were running.
            result = merge(self._metrics, normalized, document.source_label, today=today)

        if result.changed:
            self._commit(result.metrics)
        else:
            logger.info("Import of %s changed nothing", document.source_label)
        return result

    def delete_metric(self, metric_id: str) -> bool:
        """Delete a metric and its history. Returns False if it did not exist."""
        remaining = history_editor.delete_metric(self._metrics, metric_id)
        if len(remaining) == len(self._metrics):
            return False
        self._commit(remaining)
        return True

    def delete_data_point(self, metric_id: str, point_index: int) -> bool:
        """Delete the point at an ascending-order index.

        Returns False when the metric or index does not exist.
        """
        before = self.get_metric(metric_id)
        after = history_editor.delete_data_point(self._metrics, metric_id, point_index)
        if before is None or self._unchanged(before, after):
            return False
        self._commit(after)
        return True

    def delete_display_point(self, metric_id: str, display_index: int) -> bool:
        """Delete a point addressed by its newest-first display position."""
        metric = self.get_metric(metric_id)
        if metric is None:
            return False
        return self.delete_data_point(metric_id, metric_view.ascending_index(metric, display_index))

    def delete_all(self) -> int:
        """Delete every metric. Returns how many were removed."""
        count = len(self._metrics)
        self._commit([])
        logger.warning("Deleted ALL metrics: %d removed", count)
        return count

    # ------------------------------------------------------------------
    # Advice
    # ------------------------------------------------------------------

    async def ask(self, message: str) -> str:
        """Send a message to the advisor and record both turns.

        Raises:
            OperationInProgressError: If an advice call is already running.
        """
        with self._busy("advice"):
            reply = await self._advisor.converse(message, self._metrics, self._chat)
        self._chat.append(ChatTurn(role="user", text=message))
        self._chat.append(ChatTurn(role="model", text=reply))
        return reply

    def reset_conversation(self) -> None:
        self._chat.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _busy(self, kind: str) -> Iterator[None]:
        if kind in self._busy_kinds:
            raise OperationInProgressError(kind)
        self._busy_kinds.add(kind)
        try:
            yield
        finally:
            self._busy_kinds.discard(kind)

    @staticmethod
    def _unchanged(before: Metric, after: list[Metric]) -> bool:
        return any(m is before for m in after)

    def _commit(self, next_metrics: list[Metric]) -> None:
        self._metrics = next_metrics
        if self._store is not None:
            try:
                self._store.save(next_metrics)
            except PersistenceError as exc:
                # In-memory state stays authoritative; the next save catches up.
                logger.error("Snapshot save failed, keeping in-memory state: %s", exc)
        for observer in list(self._observers):
            observer(self.metrics)
