"""
Contents extraction tool: POST /v1/contents for 1-10 URLs. Returns the Valyu response unchanged.
"""
from typing import Any, Optional, Union
from urllib.parse import urlsplit

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field, field_validator

from valyu_tools.base import ExtractEffort, ResponseLengthPreset
from valyu_tools.composer import compose_contents_body
from valyu_tools.config import ApiKeyProvider
from valyu_tools.registry import ToolDefinition, to_langchain_tool
from valyu_tools.resolver import ConfigResolver, ToolConfig
from valyu_tools.transport import CONTENTS_PATH, ValyuTransport

MAX_URLS = 10
ACTION = "extract content with Valyu"
DESCRIPTION = (
    "Extract clean, structured content from URLs. Use this to read and process web pages, "
    "articles, and documents."
)


class ContentsConfig(ToolConfig):
    response_length: ResponseLengthPreset = Field(default="max", description="short, medium, large or max")
    extract_effort: ExtractEffort = Field(default="auto", description="auto, low, medium or high")


class ContentsInput(BaseModel):
    """Input for content extraction. URLs are sent exactly as given."""
    urls: list[str] = Field(
        ...,
        min_length=1,
        max_length=MAX_URLS,
        description="Array of URLs to extract content from (1-10 URLs)",
    )

    @field_validator("urls")
    @classmethod
    def _check_urls(cls, urls: list[str]) -> list[str]:
        for url in urls:
            parts = urlsplit(url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ValueError(f"not a valid http(s) URL: {url!r}")
        return urls


def make_contents_tool(
    config: Union[ContentsConfig, dict[str, Any], None] = None,
    *,
    transport: Optional[ValyuTransport] = None,
    api_key_provider: Optional[ApiKeyProvider] = None,
) -> ToolDefinition:
    if not isinstance(config, ContentsConfig):
        config = ContentsConfig.model_validate(config or {})
    resolver = ConfigResolver(api_key_provider)
    transport = transport or ValyuTransport()

    def _prepare(urls):
        api_key = resolver.resolve_api_key(config.api_key)
        return api_key, compose_contents_body(urls, config.response_length, config.extract_effort)

    def execute(urls: list[str]) -> Any:
        api_key, body = _prepare(urls)
        return transport.send("POST", CONTENTS_PATH, api_key=api_key, action=ACTION, body=body)

    async def aexecute(urls: list[str]) -> Any:
        api_key, body = _prepare(urls)
        return await transport.asend("POST", CONTENTS_PATH, api_key=api_key, action=ACTION, body=body)

    return ToolDefinition(
        name="contents",
        description=DESCRIPTION,
        args_schema=ContentsInput,
        execute=execute,
        aexecute=aexecute,
    )


def contents(**config) -> StructuredTool:
    """LangChain tool for content extraction. Keyword arguments are ContentsConfig fields."""
    return to_langchain_tool(make_contents_tool(config))
