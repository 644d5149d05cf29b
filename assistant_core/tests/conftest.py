"""Shared pytest fixtures."""

import asyncio
import copy
import inspect
import json
import os

import pytest

from assistant_core.config.settings import AISettings, EmailSettings, Settings
from assistant_core.tools.definitions import ToolDef, ToolParam
from assistant_core.tools.registry import ToolRegistry


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """屏蔽进程环境变量、.env 与 config.yaml，让每个测试只看到显式传入的配置。"""

    fields = set(Settings.model_fields) | {"tools_enabled"}
    for name in list(os.environ):
        key = name.lower()
        if key in fields or key.split("__", 1)[0] in fields:
            monkeypatch.delenv(name, raising=False)
    empty = tmp_path / "empty-config.yaml"
    empty.write_text("", encoding="utf-8")
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(empty))
    monkeypatch.chdir(tmp_path)


class FakeResponse:
    def __init__(self, status_code, data):
        self.status_code = status_code
        self._data = data
        self.text = data if isinstance(data, str) else json.dumps(data)

    def json(self):
        if isinstance(self._data, str):
            raise ValueError("not json")
        return self._data


class FakeHttp:
    """Records outgoing POSTs and answers them from a queue or a handler."""

    def __init__(self):
        self.requests = []
        self.client_kwargs = []
        self.responses = []
        self.handler = None

    def queue(self, data, status_code=200):
        self.responses.append(FakeResponse(status_code, data))

    async def respond(self, url, payload):
        if self.handler is not None:
            result = self.handler(url, payload)
            if inspect.isawaitable(result):
                result = await result
            return FakeResponse(200, result)
        return self.responses.pop(0)


@pytest.fixture
def fake_http(monkeypatch):
    http = FakeHttp()

    class Client:
        def __init__(self, *a, **kw):
            http.client_kwargs.append(kw)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, json=None, headers=None, **_):
            http.requests.append({"url": url, "json": copy.deepcopy(json), "headers": dict(headers or {})})
            await asyncio.sleep(0)
            return await http.respond(url, json)

    monkeypatch.setattr("httpx.AsyncClient", Client)
    return http


def make_settings(provider="anthropic", tools=True, **overrides):
    ai = AISettings(provider=provider, api_key="sk-test-0123456789", model="test-model")
    return Settings(ai=ai, email=EmailSettings(enabled=tools), **overrides)


@pytest.fixture
def anthropic_settings():
    return make_settings("anthropic")


@pytest.fixture
def openrouter_settings():
    return make_settings("openrouter")


@pytest.fixture
def echo_calls():
    return []


@pytest.fixture
def registry(echo_calls):
    reg = ToolRegistry()

    def echo(params, ctx):
        echo_calls.append(params)
        return {"echo": params}

    reg.register(
        ToolDef(
            name="echo",
            description="Echo the parameters back",
            params={"x": ToolParam(name="x", description="anything", required=False, schema={})},
        ),
        echo,
    )
    return reg


@pytest.fixture
def settings_factory():
    return make_settings
