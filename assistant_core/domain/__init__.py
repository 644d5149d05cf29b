"""领域层模型与协议。

包含：
- models: ChatMessage 以及 Provider 响应归一化后的 TerminalText / ToolInvocations。
- conversation: ConversationStore 协议与安全的历史裁剪逻辑。
- exceptions: 业务异常类型定义。
"""
