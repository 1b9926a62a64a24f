"""
Prompt completion via Gemini (LangChain).

Implements the prompt-completion collaborator used by the script flow:
``query_prompt(text, max_tokens)`` answers with the model's text.
"""

import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from canvas_flow.config import Settings, get_settings

logger = logging.getLogger(__name__)


def message_text(content: Any) -> str:
    """Flatten LangChain message content (str or list of blocks) into text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


class GeminiPromptService:
    """Prompt-completion collaborator backed by ChatGoogleGenerativeAI."""

    def __init__(self, llm: BaseChatModel | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._llm = llm

    def _get_llm(self, max_tokens: int) -> BaseChatModel:
        if self._llm is not None:
            return self._llm
        return ChatGoogleGenerativeAI(
            model=self.settings.prompt_model,
            google_api_key=self.settings.google_api_key,
            temperature=self.settings.prompt_temperature,
            max_output_tokens=max_tokens,
        )

    async def query_prompt(self, text: str, max_tokens: int) -> str:
        llm = self._get_llm(max_tokens)
        logger.info(f"[Prompt] querying {self.settings.prompt_model} (max_tokens={max_tokens})")
        response = await llm.ainvoke([HumanMessage(content=text)])
        answer = message_text(response.content).strip()
        logger.debug(f"[Prompt] answer: \"{answer[:100]}...\"")
        return answer
