"""Minimal demonstration of the chat agent with one registered tool."""

import asyncio
import os
from pathlib import Path

from assistant_core import get_ai_response, get_tool_registry, load_config
from assistant_core.tools.definitions import ToolDef, ToolParam


def file_list(params, ctx):
    path = Path(os.path.expanduser(params.get("path") or "~"))
    return {"path": str(path), "files": sorted(p.name for p in path.iterdir())[:50]}


if __name__ == "__main__":
    get_tool_registry().register(
        ToolDef(
            name="file_list",
            description="List files in a directory",
            params={"path": ToolParam(name="path", description="目录路径", required=True)},
        ),
        file_list,
    )
    config = load_config(tools_enabled=True)
    question = "请列出我桌面上的文件，并简单总结一下"
    reply = asyncio.run(get_ai_response(config, "demo", question))
    print("User:", question)
    print("Agent:", reply)
