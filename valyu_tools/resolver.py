"""
Configuration resolver: merges per-call arguments, caller configuration, tool defaults
and the environment fallback for the API key into a ResolvedConfig.

Precedence, highest first: per-call argument > caller config > tool default > API key provider.
Numeric fields are not range-checked; the Valyu API is the authority on valid values.
"""
from collections.abc import Sequence
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from valyu_tools.base import ResolvedConfig, ResponseLength, SearchType, ToolDefaults
from valyu_tools.config import ApiKeyProvider, settings_api_key
from valyu_tools.errors import MissingCredential


class ToolConfig(BaseModel):
    """Caller configuration shared by every tool. Accepts snake_case or camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    api_key: Optional[str] = Field(default=None, repr=False, description="Valyu API key; defaults to VALYU_API_KEY")


class SearchConfig(ToolConfig):
    """Caller configuration for the deepsearch-backed tools."""
    search_type: Optional[SearchType] = Field(default=None, description="proprietary, web or all")
    max_num_results: Optional[int] = Field(default=None, description="Maximum number of results")
    max_price: Optional[float] = Field(default=None, description="Price ceiling per query, in CPM")
    relevance_threshold: Optional[float] = Field(default=None, description="Minimum relevance (0-1)")
    response_length: Optional[ResponseLength] = Field(
        default=None, description="short, medium, large, max or a character count per result"
    )
    included_sources: Optional[list[str]] = Field(default=None, description="Sources to search")
    excluded_sources: Optional[list[str]] = Field(default=None, description="Sources to skip")
    category: Optional[str] = Field(default=None, description="Category to focus the search on")
    is_tool_call: bool = Field(default=True, description="Flag for agentic integration")


def _sources(value: Optional[Sequence[str]]) -> Optional[tuple[str, ...]]:
    """Empty lists count as unset."""
    if not value:
        return None
    return tuple(value)


class ConfigResolver:
    """Builds ResolvedConfig objects. The API key provider is injected so tests can fake the environment."""

    def __init__(self, api_key_provider: Optional[ApiKeyProvider] = None):
        self._api_key_provider = api_key_provider or settings_api_key

    def resolve_api_key(self, explicit: Optional[str] = None) -> str:
        api_key = explicit or self._api_key_provider()
        if not api_key:
            raise MissingCredential()
        return api_key

    def resolve(
        self,
        defaults: ToolDefaults,
        config: Optional[SearchConfig] = None,
        *,
        included_sources: Optional[Sequence[str]] = None,
        excluded_sources: Optional[Sequence[str]] = None,
    ) -> ResolvedConfig:
        config = config or SearchConfig()
        api_key = self.resolve_api_key(config.api_key)

        included = (
            _sources(included_sources)
            or _sources(config.included_sources)
            or _sources(defaults.sources)
        )
        # both lists may be set; the server decides how they interact
        excluded = _sources(excluded_sources) or _sources(config.excluded_sources)

        return ResolvedConfig(
            api_key=api_key,
            search_type=config.search_type or defaults.search_type,
            max_results=config.max_num_results if config.max_num_results is not None else defaults.max_results,
            max_price=config.max_price,
            relevance_threshold=config.relevance_threshold,
            response_length=config.response_length,
            included_sources=included,
            excluded_sources=excluded,
            category=config.category or None,
        )
