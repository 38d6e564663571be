"""Tool definitions and the registry that merges tool sources."""
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union, TYPE_CHECKING
from pydantic import BaseModel, ValidationError
from slackwire.errors import ToolConfigurationError
from slackwire.utils.logging import get_logger

if TYPE_CHECKING:
    from slack_sdk.web.async_client import AsyncWebClient
    from slackwire.tools.web import ExaSearch

logger = get_logger(__name__)

class ToolFailure(str):
    """A tool outcome signalling that the call did not succeed.

    Failures are returned to the model like any other result so it can
    explain them, instead of being raised into the turn.
    """

@dataclass
class Tool:
    """A named capability the model can call.

    Attributes:
        name: Function name exposed to the model
        description: Used by the model to decide when to call the tool
        input_model: Pydantic model validating the call arguments
        implementation: Async callable receiving the validated arguments as keywords
        attributes: Free-form tags, e.g. {"source": "slack"}
    """
    name: str
    description: str
    input_model: Type[BaseModel]
    implementation: Callable[..., Awaitable[str]]
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def definition(self) -> Dict[str, Any]:
        """OpenAI-style function definition, as accepted by litellm."""
        parameters = self.input_model.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }

    async def execute(self, arguments: Union[str, Dict[str, Any], None]) -> str:
        """Validate arguments and run the tool. Never raises.

        Returns:
            The tool output, or a ToolFailure describing what went wrong
        """
        try:
            if isinstance(arguments, str):
                arguments = json.loads(arguments) if arguments.strip() else {}
            params = self.input_model.model_validate(arguments or {})
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Invalid arguments for tool {self.name}: {e}")
            return ToolFailure(f"Invalid arguments for {self.name}: {e}")

        try:
            result = await self.implementation(**params.model_dump())
        except Exception as e:
            logger.error(f"Error executing tool {self.name}: {e}")
            return ToolFailure(f"Error executing {self.name}: {e}")

        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)

class ToolRegistry:
    """Ordered mapping of tool name to Tool."""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool, source: Optional[str] = None) -> Tool:
        """Register a tool.

        Args:
            tool: The tool to register
            source: Where the tool comes from ("slack", "local", ...)

        Returns:
            The registered tool

        Raises:
            ToolConfigurationError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            existing = self._tools[tool.name].attributes.get("source", "unknown")
            raise ToolConfigurationError(
                f"Tool '{tool.name}' from source '{source or 'unknown'}' collides with a tool from '{existing}'"
            )
        if source:
            tool.attributes.setdefault("source", source)
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool '{tool.name}' from {source or 'unknown'}")
        return tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def list(self, source: Optional[str] = None) -> List[Tool]:
        """List registered tools, optionally filtered by source."""
        if source is None:
            return [*self._tools.values()]
        return [t for t in self._tools.values() if t.attributes.get("source") == source]

    def names(self) -> List[str]:
        return [*self._tools]

    def definitions(self) -> List[Dict[str, Any]]:
        return [tool.definition for tool in self._tools.values()]

    async def execute(self, name: str, arguments: Union[str, Dict[str, Any], None]) -> str:
        tool = self._tools.get(name)
        if tool is None:
            return ToolFailure(f"Unknown tool '{name}'")
        return await tool.execute(arguments)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

def build_tools(client: "AsyncWebClient", search: "ExaSearch") -> ToolRegistry:
    """Merge the Slack tools with the locally defined tools.

    Called once at startup; a name collision between the two sources is a
    deployment error and aborts startup.

    Raises:
        ToolConfigurationError: If two tools share a name
    """
    from slackwire.tools.local import create_local_tools
    from slackwire.tools.slack import create_slack_tools

    registry = ToolRegistry()
    for tool in create_slack_tools(client):
        registry.register(tool, source="slack")
    for tool in create_local_tools(client, search):
        registry.register(tool, source="local")
    logger.info(f"Built tool registry with {len(registry)} tools: {', '.join(registry.names())}")
    return registry
