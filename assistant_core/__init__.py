"""Assistant Core 顶层包。

该包提供聊天助手前端的核心实现，
包括配置加载、领域模型、Provider 适配、工具注册与文本工具调用解析、
多轮工具调用循环与会话历史管理等能力。
"""

from assistant_core.api.service import get_ai_response, get_tool_registry
from assistant_core.config.settings import load_config

__all__ = ["get_ai_response", "get_tool_registry", "load_config"]
