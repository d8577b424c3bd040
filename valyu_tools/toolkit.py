"""
Assembles every Valyu tool into a ToolRegistry. The default registry is built once on first use
and never mutated afterwards.
"""
from typing import Any, Optional

from langchain_core.tools import StructuredTool

from valyu_tools.company_research import make_company_research_tool
from valyu_tools.config import ApiKeyProvider
from valyu_tools.contents import make_contents_tool
from valyu_tools.datasources import make_datasources_categories_tool, make_datasources_tool
from valyu_tools.registry import ToolRegistry
from valyu_tools.search_tools import PROFILES, make_search_tool
from valyu_tools.transport import ValyuTransport


def build_registry(
    *,
    api_key: Optional[str] = None,
    transport: Optional[ValyuTransport] = None,
    api_key_provider: Optional[ApiKeyProvider] = None,
    configs: Optional[dict[str, dict[str, Any]]] = None,
) -> ToolRegistry:
    """
    Registry with every tool. `configs` maps tool name -> caller config for that tool;
    `api_key` applies to every tool that does not set its own.
    """
    transport = transport or ValyuTransport()
    configs = configs or {}

    def config_for(name: str) -> dict[str, Any]:
        config = dict(configs.get(name) or {})
        if api_key and not (config.get("api_key") or config.get("apiKey")):
            config["api_key"] = api_key
        return config

    shared = {"transport": transport, "api_key_provider": api_key_provider}
    registry = ToolRegistry()
    for name, profile in PROFILES.items():
        registry.register(make_search_tool(profile, config_for(name), **shared))
    registry.register(make_company_research_tool(config_for("company_research"), **shared))
    registry.register(make_contents_tool(config_for("contents"), **shared))
    registry.register(make_datasources_tool(config_for("datasources"), **shared))
    registry.register(make_datasources_categories_tool(config_for("datasources_categories"), **shared))
    return registry


# Default registry for the process
_registry = None


def get_registry() -> ToolRegistry:
    global _registry
    if _registry is None:
        _registry = build_registry()
    return _registry


def get_tools(**kwargs) -> list[StructuredTool]:
    """LangChain tools for binding to an agent. Keyword arguments go to build_registry."""
    registry = build_registry(**kwargs) if kwargs else get_registry()
    return registry.as_langchain_tools()
