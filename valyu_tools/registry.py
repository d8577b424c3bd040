"""
Tool registry / dispatcher. Every tool is a ToolDefinition: name, description, input schema
and the functions that execute it. Arguments are validated against the schema before the
executor runs. The registry holds no per-call state.
"""
import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ValidationError

from valyu_tools.base import ToolDefaults
from valyu_tools.errors import ToolValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    args_schema: type[BaseModel]
    execute: Callable[..., Any]
    aexecute: Optional[Callable[..., Awaitable[Any]]] = None
    defaults: Optional[ToolDefaults] = None

    def validate(self, raw_args: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        """Check raw agent arguments against the schema; returns executor kwargs."""
        try:
            parsed = self.args_schema.model_validate(dict(raw_args or {}))
        except ValidationError as e:
            raise ToolValidationError(self.name, e.errors(include_url=False)) from e
        return {name: getattr(parsed, name) for name in type(parsed).model_fields}


def to_langchain_tool(definition: ToolDefinition) -> StructuredTool:
    """Wrap a definition for LangChain agents; Valyu errors come back as observations."""
    return StructuredTool.from_function(
        func=definition.execute,
        coroutine=definition.aexecute,
        name=definition.name,
        description=definition.description,
        args_schema=definition.args_schema,
        handle_tool_error=True,
    )


class ToolRegistry:
    """Explicit name -> ToolDefinition mapping. Duplicate names are rejected."""

    def __init__(self, definitions: Optional[list[ToolDefinition]] = None):
        self._tools: dict[str, ToolDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: ToolDefinition) -> ToolDefinition:
        if definition.name in self._tools:
            raise ValueError(f"Tool already registered: {definition.name}")
        self._tools[definition.name] = definition
        return definition

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name}") from None

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def invoke(self, name: str, raw_args: Optional[Mapping[str, Any]] = None) -> Any:
        definition = self.get(name)
        kwargs = definition.validate(raw_args)
        logger.debug("tool_invoke tool=%s", name)
        return definition.execute(**kwargs)

    async def ainvoke(self, name: str, raw_args: Optional[Mapping[str, Any]] = None) -> Any:
        definition = self.get(name)
        kwargs = definition.validate(raw_args)
        logger.debug("tool_ainvoke tool=%s", name)
        if definition.aexecute is None:
            return definition.execute(**kwargs)
        return await definition.aexecute(**kwargs)

    def as_langchain_tools(self) -> list[StructuredTool]:
        return [to_langchain_tool(d) for d in self._tools.values()]
