"""External service clients."""

from canvas_flow.services.prompt_completion import GeminiPromptService

__all__ = ["GeminiPromptService"]
