"""
Request composer: turns a ResolvedConfig plus per-call arguments into Valyu wire bodies.
Only populated fields are emitted, so server-side defaults stay in effect. The query is sent verbatim.
"""
import json
from collections.abc import Sequence
from typing import Any, Optional

from valyu_tools.base import ExtractEffort, ResolvedConfig, ResponseLength

# ResolvedConfig attribute -> wire key, in emission order.
SEARCH_FIELD_MAP: tuple[tuple[str, str], ...] = (
    ("search_type", "search_type"),
    ("max_results", "max_num_results"),
    ("included_sources", "included_sources"),
    ("max_price", "max_price"),
    ("relevance_threshold", "relevance_threshold"),
    ("category", "category"),
    ("response_length", "response_length"),
    ("excluded_sources", "excluded_sources"),
)


def _wire_value(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def compose_search_body(resolved: ResolvedConfig, query: str) -> dict[str, Any]:
    """Body for POST /v1/deepsearch."""
    body: dict[str, Any] = {"query": query}
    for attr, key in SEARCH_FIELD_MAP:
        value = getattr(resolved, attr)
        if value is None:
            continue
        body[key] = _wire_value(value)
    return body


def compose_contents_body(
    urls: Sequence[str],
    response_length: Optional[ResponseLength] = "max",
    extract_effort: Optional[ExtractEffort] = "auto",
) -> dict[str, Any]:
    """Body for POST /v1/contents."""
    body: dict[str, Any] = {"urls": list(urls)}
    if response_length is not None:
        body["response_length"] = response_length
    if extract_effort is not None:
        body["extract_effort"] = extract_effort
    return body


def compose_datasources_params(category: Optional[str] = None) -> dict[str, str]:
    """Query string for GET /v1/datasources."""
    return {"category": category} if category else {}


def encode_body(body: dict[str, Any]) -> bytes:
    """Compact JSON in insertion order; identical bodies give identical bytes."""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
