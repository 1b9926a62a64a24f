"""Tests for the Gemini prompt-completion service."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from canvas_flow.canvas.protocols import PromptCompletionProtocol, completion_text
from canvas_flow.services import prompt_completion
from canvas_flow.services.prompt_completion import GeminiPromptService, message_text


@pytest.fixture
def llm():
    """Chat model stub answering with padded text."""
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=AIMessage(content="  A foggy harbor at dawn.  "))
    return model


@pytest.mark.asyncio
async def test_query_prompt_returns_stripped_text(llm, settings):
    service = GeminiPromptService(llm=llm, settings=settings)

    answer = await service.query_prompt("Describe a harbor", 200)

    assert answer == "A foggy harbor at dawn."
    llm.ainvoke.assert_awaited_once_with([HumanMessage(content="Describe a harbor")])


@pytest.mark.asyncio
async def test_model_is_built_from_settings(monkeypatch, settings):
    """Without an injected model a ChatGoogleGenerativeAI is built per request."""
    built = {}

    def fake_chat_model(**kwargs):
        built.update(kwargs)
        model = MagicMock()
        model.ainvoke = AsyncMock(return_value=AIMessage(content="ok"))
        return model

    monkeypatch.setattr(prompt_completion, "ChatGoogleGenerativeAI", fake_chat_model)
    settings.google_api_key = "test-key"

    answer = await GeminiPromptService(settings=settings).query_prompt("hi", 1500)

    assert answer == "ok"
    assert built == {
        "model": settings.prompt_model,
        "google_api_key": "test-key",
        "temperature": settings.prompt_temperature,
        "max_output_tokens": 1500,
    }


def test_message_text_flattens_blocks():
    content = ["Part one. ", {"type": "text", "text": "Part two."}, {"type": "image_url", "image_url": "x"}]

    assert message_text(content) == "Part one. Part two."
    assert message_text("plain") == "plain"
    assert message_text(None) == ""


def test_service_satisfies_protocol(llm, settings):
    assert isinstance(GeminiPromptService(llm=llm, settings=settings), PromptCompletionProtocol)


@pytest.mark.parametrize(
    "result, expected",
    [
        (" text ", "text"),
        ({"response": " from response "}, "from response"),
        ({"enhanced_prompt": "enhanced"}, "enhanced"),
        ({"other": "ignored"}, ""),
        (42, ""),
    ],
)
def test_completion_text(result, expected):
    assert completion_text(result) == expected
