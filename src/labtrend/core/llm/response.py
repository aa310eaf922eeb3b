"""Response parsing for collaborator LLM output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class ResponseFormatError(ValueError):
    """Raised when an LLM response is not the JSON structure that was asked for."""


def parse_json_payload(content: str) -> Any:
    """Parse a JSON document from LLM output.

    Models sometimes wrap JSON in a Markdown code fence or add a sentence
    before it; the fence is stripped, and failing a direct parse the
    outermost ``{...}`` span is tried.

    Raises:
        ResponseFormatError: If no JSON document can be recovered.
    """
    text = content.strip()
    if not text:
        raise ResponseFormatError("empty response")

    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            pass

    logger.debug("Unparseable LLM response (%d chars)", len(content))
    raise ResponseFormatError("response is not valid JSON")


def extract_metric_list(payload: Any) -> list[dict[str, Any]]:
    """Return the ``metrics`` list of an extraction/normalization payload.

    Accepts ``{"metrics": [...]}`` or a bare list.

    Raises:
        ResponseFormatError: If the payload does not hold a list of objects.
    """
    metrics = payload.get("metrics") if isinstance(payload, dict) else payload
    if not isinstance(metrics, list):
        raise ResponseFormatError("response has no 'metrics' list")
    if not all(isinstance(item, dict) for item in metrics):
        raise ResponseFormatError("'metrics' must contain only objects")
    return metrics
