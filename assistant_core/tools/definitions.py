"""工具数据结构定义。

这些 dataclass 描述了“工具调用”的 schema，既用于：
- 将可用工具列表暴露给 LLM（ToolDef / ToolParam）。
- 在 ChatAgent 中保存和执行模型触发的工具调用（ToolCall / ToolResult）。
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass
class ToolParam:
    """单个工具参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any] = field(default_factory=lambda: {"type": "string"})


@dataclass
class ToolDef:
    """一个可供 LLM 调用的工具定义。"""

    name: str
    description: str
    params: Dict[str, ToolParam] = field(default_factory=dict)

    def input_schema(self) -> Dict[str, Any]:
        """生成 JSON Schema 形式的参数描述，两种 Provider 共用。"""

        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in self.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }


@dataclass
class ToolCall:
    """模型发起的一次工具调用请求。

    - raw_arguments: 原生 tool_calls 返回的 JSON 字符串，回写历史时原样保留。
    - parse_error: raw_arguments 无法解析时的错误描述，此时不会真正执行工具。
    """

    id: str
    name: str
    arguments: Dict[str, Any]
    raw_arguments: Optional[str] = None
    parse_error: Optional[str] = None


@dataclass
class ToolResult:
    """工具执行结果的封装，content 为工具输出的 JSON 序列化文本。"""

    call_id: str
    content: str

    @classmethod
    def from_output(cls, call_id: str, output: Any) -> "ToolResult":
        return cls(call_id=call_id, content=json.dumps(output, ensure_ascii=False, default=str))

    def decode(self) -> Any:
        return json.loads(self.content)

    @property
    def is_error(self) -> bool:
        output = self.decode()
        return isinstance(output, dict) and bool(output.get("error"))
