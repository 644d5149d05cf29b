"""系统提示词组装工具。

在配置的基础提示词之后，按顺序追加记忆目录（settings.memory_dir）中的
soul.md / user.md / tools.md，以及当前运行环境信息，作为每次请求的 system prompt。
"""

import getpass
import platform
from pathlib import Path
from typing import Optional, Union

from assistant_core.config.settings import settings


MEMORY_SECTIONS = (
    ("soul.md", "YOUR IDENTITY AND RULES"),
    ("user.md", "ABOUT YOUR USER"),
    ("tools.md", "HOW TO USE YOUR TOOLS"),
)

SECTION_DIVIDER = "\n\n---\n\n"


def _read_memory_file(memory_dir: Path, fname: str) -> str:
    path = memory_dir / fname
    if not path.is_file():
        return ""
    return path.read_text(encoding="utf-8").strip()


def _system_environment() -> str:
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        username = "unknown"
    home = Path.home()
    lines = [
        f"Platform: {platform.system() or 'unknown'}",
        f"Username: {username}",
        f"Home Directory: {home}",
        f"Desktop: {home / 'Desktop'}",
        f"Documents: {home / 'Documents'}",
        f"Downloads: {home / 'Downloads'}",
    ]
    return "\n".join(lines)


def build_system_prompt_with_memory(
    base_prompt: str,
    memory_dir: Optional[Union[str, Path]] = None,
) -> str:
    """组合基础提示词、记忆文件与系统环境信息。

    memory_dir 为空时读取 settings.memory_dir；目录不存在时只追加环境信息。
    """

    prompt = base_prompt or ""
    raw_dir = memory_dir if memory_dir is not None else settings.memory_dir
    if raw_dir:
        directory = Path(raw_dir).expanduser()
        for fname, title in MEMORY_SECTIONS:
            text = _read_memory_file(directory, fname)
            if text:
                prompt += f"{SECTION_DIVIDER}# {title}\n\n{text}"
    prompt += f"{SECTION_DIVIDER}# SYSTEM ENVIRONMENT\n\n{_system_environment()}\n"
    return prompt
