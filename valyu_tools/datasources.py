"""
Datasource discovery tools: let an agent see which Valyu sources and categories exist
before searching. Both are plain GETs; responses are returned unchanged.
"""
from typing import Any, Optional, Union

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from valyu_tools.composer import compose_datasources_params
from valyu_tools.config import ApiKeyProvider
from valyu_tools.registry import ToolDefinition, to_langchain_tool
from valyu_tools.resolver import ConfigResolver, ToolConfig
from valyu_tools.transport import DATASOURCE_CATEGORIES_PATH, DATASOURCES_PATH, ValyuTransport


class DatasourcesInput(BaseModel):
    category: Optional[str] = Field(
        default=None,
        description=(
            "Filter datasources by category (e.g., 'finance', 'biomedical', 'legal'). "
            "Use datasources_categories to see available categories."
        ),
    )


class DatasourcesCategoriesInput(BaseModel):
    """Takes no arguments."""


def _as_config(config: Union[ToolConfig, dict[str, Any], None]) -> ToolConfig:
    if isinstance(config, ToolConfig):
        return config
    return ToolConfig.model_validate(config or {})


def make_datasources_tool(
    config: Union[ToolConfig, dict[str, Any], None] = None,
    *,
    transport: Optional[ValyuTransport] = None,
    api_key_provider: Optional[ApiKeyProvider] = None,
) -> ToolDefinition:
    config = _as_config(config)
    resolver = ConfigResolver(api_key_provider)
    transport = transport or ValyuTransport()
    action = "fetch datasources from Valyu"

    def execute(category: Optional[str] = None) -> Any:
        api_key = resolver.resolve_api_key(config.api_key)
        return transport.send(
            "GET", DATASOURCES_PATH, api_key=api_key, action=action,
            params=compose_datasources_params(category),
        )

    async def aexecute(category: Optional[str] = None) -> Any:
        api_key = resolver.resolve_api_key(config.api_key)
        return await transport.asend(
            "GET", DATASOURCES_PATH, api_key=api_key, action=action,
            params=compose_datasources_params(category),
        )

    return ToolDefinition(
        name="datasources",
        description=(
            "Discover available data sources in the Valyu network. Use this to find what sources are "
            "available before searching, filtered optionally by category."
        ),
        args_schema=DatasourcesInput,
        execute=execute,
        aexecute=aexecute,
    )


def make_datasources_categories_tool(
    config: Union[ToolConfig, dict[str, Any], None] = None,
    *,
    transport: Optional[ValyuTransport] = None,
    api_key_provider: Optional[ApiKeyProvider] = None,
) -> ToolDefinition:
    config = _as_config(config)
    resolver = ConfigResolver(api_key_provider)
    transport = transport or ValyuTransport()
    action = "fetch datasource categories from Valyu"

    def execute() -> Any:
        api_key = resolver.resolve_api_key(config.api_key)
        return transport.send("GET", DATASOURCE_CATEGORIES_PATH, api_key=api_key, action=action)

    async def aexecute() -> Any:
        api_key = resolver.resolve_api_key(config.api_key)
        return await transport.asend("GET", DATASOURCE_CATEGORIES_PATH, api_key=api_key, action=action)

    return ToolDefinition(
        name="datasources_categories",
        description=(
            "List all available datasource categories in the Valyu network. Use this to see what "
            "categories can be used to filter the datasources tool."
        ),
        args_schema=DatasourcesCategoriesInput,
        execute=execute,
        aexecute=aexecute,
    )


def datasources(**config) -> StructuredTool:
    return to_langchain_tool(make_datasources_tool(config))


def datasources_categories(**config) -> StructuredTool:
    return to_langchain_tool(make_datasources_categories_tool(config))
