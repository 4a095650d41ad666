from abc import ABC, abstractmethod

import httpx

from app.core.resilience import CircuitOpenError, get_breaker
from app.core.settings import settings


class LLMProviderError(RuntimeError):
    """The completion endpoint was unreachable, timed out, answered non-2xx or sent a malformed body."""


def _estimate_tokens(text: str) -> int:
    # Lightweight deterministic estimate used for observability without provider-specific token APIs.
    return max(1, len((text or "").strip()) // 4)


class BaseLLMProvider(ABC):
    provider_name: str
    model_name: str = "none"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
        system_prompt: str | None = None,
    ) -> tuple[str | None, dict]:
        raise NotImplementedError

    def _usage(self, prompt: str, text: str, role: str | None) -> dict:
        return {
            "provider": self.provider_name,
            "model": self.model_name,
            "role": role,
            "prompt_tokens_estimate": _estimate_tokens(prompt),
            "completion_tokens_estimate": _estimate_tokens(text),
            "total_tokens_estimate": _estimate_tokens(prompt) + _estimate_tokens(text),
        }

    async def _guarded(self, breaker_name: str, call):
        breaker = get_breaker(breaker_name)
        try:
            return await breaker.call(call)
        except CircuitOpenError as exc:
            raise LLMProviderError(str(exc)) from exc
        except httpx.TimeoutException as exc:
            raise LLMProviderError(f"{self.provider_name} request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise LLMProviderError(f"{self.provider_name} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise LLMProviderError(f"{self.provider_name} unreachable: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMProviderError(f"{self.provider_name} sent a malformed body") from exc


class GroqLLMProvider(BaseLLMProvider):
    """OpenAI-compatible chat completions endpoint (Groq by default)."""

    provider_name = "groq"

    def __init__(self, model_name: str | None = None, role: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.model_name = model_name or settings.llm_model
        self.role = role or "content_generator"
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
        system_prompt: str | None = None,
    ) -> tuple[str | None, dict]:
        if not settings.groq_api_key:
            return None, {"provider": self.provider_name, "model": self.model_name, "reason": "missing_api_key"}

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model_name,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        async def _call():
            async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    settings.groq_api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {settings.groq_api_key}"},
                )
                response.raise_for_status()
                data = response.json()
            choices = data.get("choices") or []
            if not choices:
                return None, {"provider": self.provider_name, "model": self.model_name, "reason": "no_choices"}
            text = ((choices[0].get("message") or {}).get("content") or "").strip()
            return (text or None), self._usage(prompt, text, self.role)

        return await self._guarded(f"llm:{self.provider_name}:{self.model_name}", _call)


class OllamaLLMProvider(BaseLLMProvider):
    provider_name = "ollama"

    def __init__(self, model_name: str | None = None, role: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.model_name = model_name or settings.ollama_model
        self.role = role or "content_generator"
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
        system_prompt: str | None = None,
    ) -> tuple[str | None, dict]:
        body = {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        if system_prompt:
            body["system"] = system_prompt

        async def _call():
            async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=self._transport) as client:
                response = await client.post(f"{settings.ollama_base_url.rstrip('/')}/api/generate", json=body)
                response.raise_for_status()
                data = response.json()
            text = (data.get("response") or "").strip()
            return (text or None), self._usage(prompt, text, self.role)

        return await self._guarded(f"llm:{self.provider_name}:{self.model_name}", _call)


class NullLLMProvider(BaseLLMProvider):
    provider_name = "none"

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
        system_prompt: str | None = None,
    ) -> tuple[str | None, dict]:
        return None, {
            "provider": self.provider_name,
            "model": "none",
            "prompt_tokens_estimate": _estimate_tokens(prompt),
            "completion_tokens_estimate": 0,
            "total_tokens_estimate": _estimate_tokens(prompt),
            "reason": "unsupported_provider",
        }


def get_llm_provider(role: str | None = None) -> BaseLLMProvider:
    provider = (settings.llm_provider or "").lower()
    if provider == "groq":
        return GroqLLMProvider(model_name=settings.llm_model, role=role)
    if provider == "ollama":
        return OllamaLLMProvider(model_name=settings.ollama_model, role=role)
    return NullLLMProvider()
