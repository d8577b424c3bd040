"""Shared types for tool inputs/outputs. Responses are plain dicts shaped like the TypedDicts below."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, TypedDict, Union

SearchType = Literal["proprietary", "web", "all"]
ResponseLengthPreset = Literal["short", "medium", "large", "max"]
# A preset, or an explicit character count per result.
ResponseLength = Union[ResponseLengthPreset, int]
ExtractEffort = Literal["auto", "low", "medium", "high"]


class ResultItem(TypedDict, total=False):
    """One retrieved unit, in the upstream's relevance order."""
    id: str
    title: str
    url: str
    content: str
    source: str
    length: int
    price: float
    data_type: str
    source_type: str
    image_url: Any
    publication_date: str
    doi: str
    citation: str
    citation_count: int
    authors: list[str]
    references: str


class ResultsBySource(TypedDict):
    web: int
    proprietary: int


class ApiResponse(TypedDict, total=False):
    """Body of POST /v1/deepsearch. Extra upstream fields are kept as-is."""
    success: bool
    error: str
    tx_id: str
    query: str
    results: list[ResultItem]
    results_by_source: ResultsBySource
    total_deduction_pcm: float
    total_deduction_dollars: float
    total_characters: int


@dataclass(frozen=True)
class ResolvedConfig:
    """Finalized per-invocation search configuration. None means "let the server decide"."""
    api_key: str = field(repr=False)
    search_type: SearchType = "proprietary"
    max_results: int = 5
    max_price: Optional[float] = None
    relevance_threshold: Optional[float] = None
    response_length: Optional[ResponseLength] = None
    included_sources: Optional[tuple[str, ...]] = None
    excluded_sources: Optional[tuple[str, ...]] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class ToolDefaults:
    """Per-tool defaults, applied below caller configuration."""
    search_type: SearchType = "proprietary"
    max_results: int = 5
    sources: tuple[str, ...] = ()
