"""LabTrend MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from labtrend.core.config.settings import Settings, get_settings
from labtrend.core.llm.client import LLMClient
from labtrend.core.llm.provider import LLMProvider, create_provider
from labtrend.core.storage.database import SnapshotDatabase
from labtrend.core.storage.encryption import EncryptionError, SnapshotEncryptor
from labtrend.core.storage.metric_store import MetricStore
from labtrend.domains.health.prompts.health_prompts import register_health_prompts
from labtrend.domains.health.services.advisor import AdvisorService
from labtrend.domains.health.services.extraction import ExtractionService
from labtrend.domains.health.services.normalization import NormalizationService
from labtrend.domains.health.tools.advisor_tools import register_advisor_tools
from labtrend.domains.health.tools.import_tools import register_import_tools
from labtrend.domains.health.tools.metric_tools import register_metric_tools
from labtrend.domains.health.tracker import HealthTracker

logger = logging.getLogger(__name__)


def _provider_credentials(settings: Settings) -> tuple[str, str]:
    """(api_key, model) configured for the selected provider."""
    if settings.llm_provider == "anthropic":
        return settings.anthropic_api_key, settings.anthropic_model
    if settings.llm_provider == "openai":
        return settings.openai_api_key, settings.openai_model
    return "", ""


def _build_provider() -> LLMProvider:
    """Provider for the extraction, normalization and advice calls.

    A real provider without an API key degrades to the mock provider so the
    server still starts and stored metrics stay browsable.
    """
    settings = get_settings()
    api_key, model = _provider_credentials(settings)
    provider_name = settings.llm_provider
    if provider_name != "mock" and not api_key:
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            provider_name,
        )
        provider_name = "mock"
    return create_provider(provider_name=provider_name, api_key=api_key, model=model)


def _build_store() -> MetricStore | None:
    settings = get_settings()
    encryptor: SnapshotEncryptor | None = None
    if settings.encryption_key:
        try:
            encryptor = SnapshotEncryptor(settings.encryption_key)
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence — metrics will not be stored")
            return None
    else:
        logger.info(
            "No ENCRYPTION_KEY configured — the metric snapshot is stored unencrypted. "
            "Set ENCRYPTION_KEY to encrypt it at rest."
        )

    database = SnapshotDatabase(settings.db_path)
    database.initialize()
    logger.info(
        "Metric store initialized: %s (schema v%d)",
        settings.db_path,
        database.get_schema_version(),
    )
    return MetricStore(database, encryptor, key=settings.snapshot_key)


def create_app(
    *,
    provider_override: LLMProvider | None = None,
    store_override: MetricStore | None = None,
    persist: bool = True,
) -> FastMCP:
    """Create and configure the LabTrend MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Creates the collaborator LLM client and services
    3. Opens the metric snapshot store and loads the current metrics
    4. Registers all tools and prompts

    Args:
        provider_override: LLM provider to use instead of the configured one.
        store_override: Store to use instead of the configured database.
        persist: When False and no store override is given, run in memory.
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "LabTrend",
        instructions=(
            "LabTrend — longitudinal lab result tracker. Imports lab reports "
            "(text, CSV, PDF), reconciles them into per-metric time series "
            "without duplicates, and answers questions about the results."
        ),
    )

    # --- Collaborator LLM ---
    provider = provider_override if provider_override is not None else _build_provider()
    llm_client = LLMClient(provider, max_tokens=settings.llm_max_tokens)

    # --- Metric store ---
    if store_override is not None:
        store = store_override
    elif persist:
        store = _build_store()
    else:
        store = None

    tracker = HealthTracker(
        store,
        ExtractionService(llm_client),
        NormalizationService(llm_client),
        AdvisorService(llm_client),
    )
    loaded = tracker.load()
    logger.info("Tracker ready with %d metric(s)", loaded)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "LabTrend",
            "version": "0.1.0",
            "storage_enabled": tracker.persistent,
            "metrics_tracked": len(tracker.metrics),
            "import_in_progress": tracker.is_busy("import"),
        }

    register_import_tools(server, tracker)
    register_metric_tools(server, tracker)
    register_advisor_tools(server, tracker)
    logger.info("Import, metric and advisor tools registered")

    # --- Register prompts ---
    register_health_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when accessed (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
