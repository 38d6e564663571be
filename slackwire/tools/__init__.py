from slackwire.tools.registry import Tool, ToolFailure, ToolRegistry, build_tools

__all__ = ["Tool", "ToolFailure", "ToolRegistry", "build_tools"]
