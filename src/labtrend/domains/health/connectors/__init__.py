"""Lab data connectors — how import inputs reach the extraction collaborator."""

from __future__ import annotations

from labtrend.domains.health.connectors.document_input import (
    MANUAL_TEXT_LABEL,
    DocumentInputError,
    ExtractionInput,
)

__all__ = ["MANUAL_TEXT_LABEL", "DocumentInputError", "ExtractionInput"]
