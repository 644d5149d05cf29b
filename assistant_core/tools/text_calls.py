"""文本形式工具调用的解析与清理。

部分模型（例如通过 OpenRouter 调用的 Gemini）不会返回原生 tool_calls，
而是在正文里输出类似下面的代码块：

    ```tool_code
    file_list(path='~/Desktop')
    ```

或 ``print(default_api.file_list(path='~/Desktop'))`` 这种包装形式，
代码块围栏也可能缺失。这里用一组规则识别这四种写法。

extract_text_tool_calls 与 strip_text_tool_calls 共用同一份规则和匹配逻辑：
能被解析出来的片段一定会被清理掉，未注册工具的片段两者都原样保留。
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Pattern
from uuid import uuid4

from .definitions import ToolCall


IsRegistered = Callable[[str], bool]

_NAME = r"(?P<name>[a-z_][a-z0-9_]*)"
_ARGS = r"\((?P<args>[^)]*)\)"


@dataclass(frozen=True)
class TextCallRule:
    name: str
    pattern: Pattern[str]


# 顺序即优先级：带围栏的先于裸写法，print 包装先于直接调用
TEXT_CALL_RULES: List[TextCallRule] = [
    TextCallRule(
        "fenced_print",
        re.compile(r"```tool_code\s*\nprint\(default_api\." + _NAME + _ARGS + r"\)\s*```", re.IGNORECASE),
    ),
    TextCallRule(
        "fenced_direct",
        re.compile(r"```tool_code\s*\n" + _NAME + _ARGS + r"\s*```", re.IGNORECASE),
    ),
    TextCallRule(
        "bare_print",
        re.compile(r"tool_code\s*\nprint\(default_api\." + _NAME + _ARGS + r"\)", re.IGNORECASE),
    ),
    TextCallRule(
        "bare_direct",
        re.compile(r"tool_code\s*\n" + _NAME + _ARGS, re.IGNORECASE),
    ),
]

_ARG_PATTERN = re.compile(r"(\w+)\s*=\s*['\"]([^'\"]*)['\"]")


@dataclass(frozen=True)
class TextCallMatch:
    start: int
    end: int
    rule: str
    name: str
    args: str


def parse_tool_args(args: str) -> Dict[str, str]:
    """解析 key='value', key2="value2" 形式的参数，重复的 key 以最后一次为准。"""

    params: Dict[str, str] = {}
    for m in _ARG_PATTERN.finditer(args or ""):
        params[m.group(1)] = m.group(2)
    return params


def find_text_tool_calls(content: str, is_registered: IsRegistered) -> List[TextCallMatch]:
    """返回正文中所有可执行的文本工具调用片段，按出现位置排序。

    与已接受片段重叠的匹配会被忽略；未注册的工具名整段丢弃。
    """

    if not content or not isinstance(content, str):
        return []
    accepted: List[TextCallMatch] = []
    for rule in TEXT_CALL_RULES:
        for m in rule.pattern.finditer(content):
            start, end = m.span()
            if any(start < a.end and a.start < end for a in accepted):
                continue
            name = m.group("name")
            if not is_registered(name):
                continue
            accepted.append(TextCallMatch(start, end, rule.name, name, m.group("args")))
    accepted.sort(key=lambda item: item.start)
    return accepted


def extract_text_tool_calls(content: str, is_registered: IsRegistered) -> List[ToolCall]:
    calls: List[ToolCall] = []
    batch = uuid4().hex[:12]
    for idx, match in enumerate(find_text_tool_calls(content, is_registered)):
        calls.append(
            ToolCall(
                id=f"text_tool_{batch}_{idx}",
                name=match.name,
                arguments=parse_tool_args(match.args),
            )
        )
    return calls


def strip_text_tool_calls(content: str, is_registered: IsRegistered) -> str:
    """删除 extract_text_tool_calls 能识别的片段，避免调用语法进入历史记录。

    除被删除的片段外，只有一处改动：发生删除时会对结果整体做一次 strip()，
    去掉首尾空白；没有可删除片段时原样返回。
    """

    matches = find_text_tool_calls(content, is_registered)
    if not matches:
        return content
    pieces: List[str] = []
    cursor = 0
    for match in matches:
        pieces.append(content[cursor:match.start])
        cursor = match.end
    pieces.append(content[cursor:])
    return "".join(pieces).strip()
