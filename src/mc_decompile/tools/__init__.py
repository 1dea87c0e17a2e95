from .check import check_tools
from .process import ToolResult, ToolRunner, java_jar_argv, run_tool

__all__ = ["ToolResult", "ToolRunner", "check_tools", "java_jar_argv", "run_tool"]
