import asyncio
import json

import httpx
import pytest

from conftest import completion_tool
from ticket_intake_agent.completion import (
    CAPTURE_TOOL,
    SEARCH_TOOL,
    SYSTEM_PROMPT,
    CompletionClient,
)
from ticket_intake_agent.errors import UpstreamError
from ticket_intake_agent.models import ConversationMessage

MESSAGES = [
    ConversationMessage(role="user", content="Looking for Hamilton"),
    ConversationMessage(role="assistant", content="How many tickets?"),
    ConversationMessage(role="user", content="2"),
]


def test_request_shape(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"output_text": "What city?"})

    client = CompletionClient(settings, transport=httpx.MockTransport(handler))
    result = asyncio.run(client.complete(MESSAGES))

    assert result.text == "What city?"
    assert result.tool_calls == []

    request = seen[0]
    assert str(request.url) == "https://api.openai.com/v1/responses"
    assert request.headers["Authorization"] == "Bearer sk-test"

    body = json.loads(request.content)
    assert body["model"] == "gpt-4.1-mini"
    assert body["tool_choice"] == "auto"
    assert body["input"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert body["input"][1:] == [m.model_dump() for m in MESSAGES]

    tools = {tool["name"]: tool for tool in body["tools"]}
    assert tools[CAPTURE_TOOL]["parameters"]["required"] == ["artist_or_event", "ticket_qty"]
    assert tools[SEARCH_TOOL]["parameters"]["required"] == ["q"]
    assert "location" in tools[SEARCH_TOOL]["parameters"]["properties"]


def test_system_prompt_orders_questions_and_avoids_contact_details():
    prompt = SYSTEM_PROMPT.lower()
    assert prompt.index("artist or event") < prompt.index("number of tickets") < prompt.index("city and date") < prompt.index("budget")
    assert "never ask for a name, email address, or phone number" in prompt


def test_tool_call_result(settings):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json=completion_tool(SEARCH_TOOL, {"q": "Hamilton"}))
    )
    result = asyncio.run(CompletionClient(settings, transport=transport).complete(MESSAGES))
    assert result.first_call(CAPTURE_TOOL) is None
    assert result.first_call(SEARCH_TOOL).arguments == {"q": "Hamilton"}
    assert result.first_call(SEARCH_TOOL).call_id == "call_1"


def test_non_success_status_is_fatal(settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text='{"error": "rate limited"}')

    client = CompletionClient(settings, transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.complete(MESSAGES))
    assert "rate limited" in str(excinfo.value)
    assert len(calls) == 1


def test_api_base_trailing_slash_is_stripped():
    from conftest import make_settings

    assert make_settings(openai_api_base="https://proxy.local/v1//").openai_api_base == "https://proxy.local/v1"
