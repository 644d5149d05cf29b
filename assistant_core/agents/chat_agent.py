"""对话引擎核心模块。

实现会话历史维护、调用 Provider、解析并执行工具调用等核心逻辑。

一次 get_ai_response 调用称为一轮对话（turn），其中每一次 Provider 请求/响应
称为一个 round。单个事件循环内多个会话的 turn 会在 await 处交错执行，因此：

1. 每个 turn 在追加用户消息后对历史做浅拷贝，所有工具往返消息只写入拷贝；
   整轮结束后再把新增部分回放到存储中，最后追加最终回复。
2. 每批工具执行前重新设置当前会话上下文，并把 ToolContext 显式传给工具。
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from assistant_core.config.settings import DEFAULT_SYSTEM_PROMPT, Settings
from assistant_core.domain.conversation import ChatId, ConversationStore
from assistant_core.domain.exceptions import ToolRoundLimitError
from assistant_core.domain.models import ChatMessage, ImageAttachment, TerminalText
from assistant_core.infrastructure.logging.logger import log_tool_call, logger
from assistant_core.prompts import build_system_prompt_with_memory
from assistant_core.providers import create_provider
from assistant_core.providers.base import ProviderClient
from assistant_core.tools.context import ToolContext, set_current_chat_id
from assistant_core.tools.definitions import ToolCall, ToolResult
from assistant_core.tools.registry import ToolProvider


ProviderFactory = Callable[[Settings], ProviderClient]
PromptBuilder = Callable[[str, Optional[str]], str]
ToolCallLogger = Callable[[str, str, Optional[Dict[str, Any]]], None]


class ChatAgent:
    def __init__(
        self,
        store: ConversationStore,
        tools: ToolProvider,
        provider_factory: ProviderFactory = create_provider,
        prompt_builder: PromptBuilder = build_system_prompt_with_memory,
        tool_logger: ToolCallLogger = log_tool_call,
    ):
        self._store = store
        self._tools = tools
        self._provider_factory = provider_factory
        self._prompt_builder = prompt_builder
        self._tool_logger = tool_logger

    async def get_ai_response(
        self,
        config: Settings,
        chat_id: ChatId,
        user_message: str,
        image: Optional[ImageAttachment] = None,
    ) -> str:
        """处理一条用户消息并返回最终回复文本。

        Args:
            config: 当前配置（Provider、模型、工具开关等）
            chat_id: 会话 ID
            user_message: 用户输入
            image: 可选的图片附件

        Returns:
            不含工具调用语法的最终回复。

        Raises:
            domain.exceptions 中定义的各类异常；失败的 turn 不会把工具往返消息写入存储。
        """
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "chat_id": chat_id,
        }

        # Provider 校验放在修改历史之前，配置错误不会留下孤立的用户消息
        provider = self._provider_factory(config)
        log_ctx["provider"] = provider.name
        self._log(logging.INFO, "Starting turn", log_ctx, has_image=image is not None)
        set_current_chat_id(chat_id)

        content = provider.format_user_content(user_message, image)
        self._store.append(chat_id, ChatMessage(role="user", content=content))
        dropped = self._store.trim(chat_id, config.max_context_messages)
        if dropped:
            self._log(
                logging.INFO,
                "Trimmed history",
                log_ctx,
                dropped=dropped,
                max_context=config.max_context_messages,
            )

        working = self._store.snapshot(chat_id)
        base_length = len(working)
        try:
            reply = await self._run_tool_loop(config, provider, chat_id, working, log_ctx)
        except Exception as e:
            self._log(logging.ERROR, "Turn failed", log_ctx, error=str(e))
            raise

        self._store.replay(chat_id, working, base_length)
        self._store.append(chat_id, ChatMessage(role="assistant", content=reply))

        self._log(
            logging.INFO,
            "Completed turn",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            round_trip_messages=len(working) - base_length,
        )
        return reply

    async def _run_tool_loop(
        self,
        config: Settings,
        provider: ProviderClient,
        chat_id: ChatId,
        working: List[ChatMessage],
        log_ctx: Dict[str, Any],
    ) -> str:
        """工具循环：请求 Provider，执行工具并追加结果，直到得到最终文本。

        超过 config.max_tool_rounds 轮后模型仍请求工具时抛出 ToolRoundLimitError。
        """

        tools = self._tools.format_tools_for_ai(provider.name) if config.tools_enabled() else None
        tool_rounds = 0

        while True:
            # 记忆文件可能在上一轮被工具修改，每次请求都重新组装
            system_prompt = self._prompt_builder(
                config.ai.system_prompt or DEFAULT_SYSTEM_PROMPT, config.memory_dir
            )
            self._log(
                logging.INFO,
                "Calling provider",
                log_ctx,
                model=config.ai.model,
                message_count=len(working),
                tool_rounds=tool_rounds,
            )
            data = await provider.send(working, system_prompt, tools)
            response = provider.normalize(data, self._is_registered)

            if isinstance(response, TerminalText):
                return response.text

            if tool_rounds >= config.max_tool_rounds:
                self._log(logging.WARNING, "Reached max tool rounds", log_ctx, max_rounds=config.max_tool_rounds)
                raise ToolRoundLimitError(config.max_tool_rounds, chat_id=chat_id)
            tool_rounds += 1

            self._log(
                logging.INFO,
                "Executing tool calls",
                log_ctx,
                round=tool_rounds,
                call_count=len(response.calls),
            )
            # 等待 Provider 期间其他会话可能已改写当前会话上下文
            set_current_chat_id(chat_id)
            results = await self._execute_calls(response.calls, ToolContext(chat_id=chat_id))

            working.append(response.assistant_message)
            working.extend(provider.tool_result_messages(results))

    async def _execute_calls(self, calls: List[ToolCall], ctx: ToolContext) -> List[ToolResult]:
        """按 Provider 返回的顺序逐个执行工具，失败结果同样序列化后交还模型。"""

        results: List[ToolResult] = []
        for call in calls:
            self._tool_logger(call.name, "running", call.arguments)
            if call.parse_error:
                output: Dict[str, Any] = {"error": call.parse_error}
            else:
                output = await self._tools.execute_tool(call.name, call.arguments, ctx)
            failed = isinstance(output, dict) and bool(output.get("error"))
            self._tool_logger(call.name, "error" if failed else "success", call.arguments)
            results.append(ToolResult.from_output(call.id, output))
        return results

    def _is_registered(self, name: str) -> bool:
        return self._tools.get_tool(name) is not None

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
