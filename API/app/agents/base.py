from abc import ABC

from app.core.llm_provider import BaseLLMProvider, get_llm_provider


class BaseAgent(ABC):
    """An LLM-backed step. Subclasses build the prompt and interpret the reply."""

    role: str = "content_generator"
    temperature: float = 0.7
    max_tokens: int = 500
    system_prompt: str | None = None

    def __init__(self, provider: BaseLLMProvider | None = None):
        self.provider = provider or get_llm_provider(role=self.role)

    async def complete(self, prompt: str) -> tuple[str | None, dict]:
        """One completion call. Raises ``LLMProviderError`` on transport problems, never retries."""
        return await self.provider.generate(
            prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            system_prompt=self.system_prompt,
        )
