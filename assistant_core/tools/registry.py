"""工具注册表。

ChatAgent 只通过以下三个能力使用工具：
- get_tool(name): 判断模型请求的工具是否真实存在。
- execute_tool(name, params, ctx): 执行工具并返回结果字典（失败时带 error 字段）。
- format_tools_for_ai(provider_id): 生成对应 Provider 的工具 schema 列表。

具体工具（邮件、文件、日历等）由上层在启动时注册，不属于本包。
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from assistant_core.infrastructure.logging.logger import logger
from .context import ToolContext
from .definitions import ToolDef


ToolOutput = Dict[str, Any]
ToolFunc = Callable[[Dict[str, Any], ToolContext], Union[ToolOutput, Awaitable[ToolOutput]]]


class ToolProvider(Protocol):
    def get_tool(self, name: str) -> Optional[ToolDef]:
        ...

    async def execute_tool(
        self, name: str, params: Dict[str, Any], ctx: Optional[ToolContext] = None
    ) -> ToolOutput:
        ...

    def format_tools_for_ai(self, provider_id: str) -> List[Dict[str, Any]]:
        ...


class ToolRegistry:
    def __init__(self) -> None:
        self._defs: Dict[str, ToolDef] = {}
        self._funcs: Dict[str, ToolFunc] = {}

    def register(self, tool: ToolDef, func: ToolFunc) -> None:
        if tool.name in self._defs:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._defs[tool.name] = tool
        self._funcs[tool.name] = func

    def unregister(self, name: str) -> None:
        self._defs.pop(name, None)
        self._funcs.pop(name, None)

    def get_tool(self, name: str) -> Optional[ToolDef]:
        return self._defs.get(name)

    def list_tools(self) -> List[ToolDef]:
        return list(self._defs.values())

    async def execute_tool(
        self, name: str, params: Dict[str, Any], ctx: Optional[ToolContext] = None
    ) -> ToolOutput:
        """执行工具。

        工具内部抛出的异常会被转换为 {"error": ...}，交还给模型处理，
        不会中断整轮对话。
        """

        func = self._funcs.get(name)
        if func is None:
            return {"error": f"Unknown tool: {name}"}
        ctx = ctx or ToolContext(chat_id=None)
        try:
            result = func(params, ctx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.exception(
                "Tool raised",
                extra={"extra": {"tool_name": name, "chat_id": ctx.chat_id}},
            )
            return {"error": str(exc) or exc.__class__.__name__}
        if not isinstance(result, dict):
            return {"result": result}
        return result

    def format_tools_for_ai(self, provider_id: str) -> List[Dict[str, Any]]:
        if provider_id == "anthropic":
            return [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.input_schema(),
                }
                for tool in self._defs.values()
            ]
        # OpenRouter / OpenAI 格式
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema(),
                },
            }
            for tool in self._defs.values()
        ]
