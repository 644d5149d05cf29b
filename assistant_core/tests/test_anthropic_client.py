import pytest

from assistant_core.domain.exceptions import ApiError, ValidationError
from assistant_core.domain.models import ChatMessage, ImageAttachment, TerminalText, ToolInvocations
from assistant_core.providers.anthropic_client import AnthropicClient
from assistant_core.tools.definitions import ToolResult


def test_format_user_content_with_image(anthropic_settings):
    client = AnthropicClient(anthropic_settings)
    assert client.format_user_content("hi") == "hi"
    blocks = client.format_user_content("what is this?", ImageAttachment(base64="AAA", mime_type="image/png"))
    assert blocks[0] == {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/png", "data": "AAA"},
    }
    assert blocks[1] == {"type": "text", "text": "what is this?"}


@pytest.mark.asyncio
async def test_send_payload_and_headers(fake_http, anthropic_settings):
    fake_http.queue({"content": [{"type": "text", "text": "ok"}]})
    client = AnthropicClient(anthropic_settings)
    tools = [{"name": "echo", "description": "", "input_schema": {"type": "object"}}]

    data = await client.send([ChatMessage(role="user", content="hi")], "be brief", tools)

    assert data == {"content": [{"type": "text", "text": "ok"}]}
    req = fake_http.requests[0]
    assert req["url"] == "https://api.anthropic.com/v1/messages"
    assert req["headers"]["x-api-key"] == "sk-test-0123456789"
    assert req["headers"]["anthropic-version"] == "2023-06-01"
    assert req["json"] == {
        "model": "test-model",
        "max_tokens": 4096,
        "system": "be brief",
        "messages": [{"role": "user", "content": "hi"}],
        "tools": tools,
    }
    assert fake_http.client_kwargs[0]["timeout"] == 60.0


@pytest.mark.asyncio
async def test_send_omits_empty_tools(fake_http, anthropic_settings):
    fake_http.queue({"content": []})
    await AnthropicClient(anthropic_settings).send([ChatMessage(role="user", content="hi")], "sys", None)
    assert "tools" not in fake_http.requests[0]["json"]


@pytest.mark.asyncio
async def test_non_2xx_raises_api_error(fake_http, anthropic_settings):
    fake_http.queue("overloaded", status_code=529)
    with pytest.raises(ApiError) as exc_info:
        await AnthropicClient(anthropic_settings).send([ChatMessage(role="user", content="hi")], "sys")
    assert str(exc_info.value) == "Anthropic API error: 529 - overloaded"
    assert exc_info.value.status == 529


@pytest.mark.asyncio
async def test_missing_api_key(fake_http, settings_factory):
    cfg = settings_factory("anthropic")
    cfg.ai.api_key = None
    with pytest.raises(ValidationError):
        await AnthropicClient(cfg).send([ChatMessage(role="user", content="hi")], "sys")
    assert fake_http.requests == []


@pytest.mark.asyncio
async def test_api_keys_fallback(fake_http, settings_factory):
    cfg = settings_factory("anthropic", api_keys={"anthropic": "sk-fallback-0123"})
    cfg.ai.api_key = None
    fake_http.queue({"content": []})
    await AnthropicClient(cfg).send([ChatMessage(role="user", content="hi")], "sys")
    assert fake_http.requests[0]["headers"]["x-api-key"] == "sk-fallback-0123"


def test_normalize_text_response(anthropic_settings):
    client = AnthropicClient(anthropic_settings)
    resp = client.normalize({"content": [{"type": "text", "text": "Hello!"}]}, lambda name: True)
    assert resp == TerminalText(text="Hello!")
    assert client.normalize({"content": []}, lambda name: True) == TerminalText(text="")


def test_normalize_tool_use_drops_unknown(anthropic_settings):
    client = AnthropicClient(anthropic_settings)
    data = {
        "content": [
            {"type": "text", "text": "Checking"},
            {"type": "tool_use", "id": "tu_1", "name": "echo", "input": {"x": 1}},
            {"type": "tool_use", "id": "tu_2", "name": "ghost", "input": {}},
        ]
    }
    resp = client.normalize(data, lambda name: name == "echo")
    assert isinstance(resp, ToolInvocations)
    assert [(c.id, c.name, c.arguments) for c in resp.calls] == [("tu_1", "echo", {"x": 1})]
    assert resp.assistant_message.role == "assistant"
    assert [b.get("id") for b in resp.assistant_message.content] == [None, "tu_1"]


def test_normalize_only_unknown_tools_is_terminal(anthropic_settings):
    client = AnthropicClient(anthropic_settings)
    data = {
        "content": [
            {"type": "text", "text": "I would use a tool"},
            {"type": "tool_use", "id": "tu_1", "name": "ghost", "input": {}},
        ]
    }
    assert client.normalize(data, lambda name: False) == TerminalText(text="I would use a tool")


def test_tool_result_messages_single_user_message(anthropic_settings):
    client = AnthropicClient(anthropic_settings)
    msgs = client.tool_result_messages(
        [ToolResult.from_output("tu_1", {"a": 1}), ToolResult.from_output("tu_2", {"error": "x"})]
    )
    assert len(msgs) == 1
    assert msgs[0].role == "user"
    assert [b["tool_use_id"] for b in msgs[0].content] == ["tu_1", "tu_2"]
    assert msgs[0].is_tool_result()
