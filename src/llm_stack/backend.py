# src/llm_stack/backend.py
"""
Backend interface for text generation, plus the hosted OpenAI backend.

The local llama.cpp backend lives in backend_llamacpp.py so that
llama_cpp is only imported when it is actually used.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from .config import DEFAULT_OPENAI_MODEL


class LLMBackend(Protocol):
    """Simple interface around a text generation backend."""

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """Generate a text completion for the given prompt."""
        ...


class OpenAIBackend:
    """
    LLMBackend over the OpenAI chat completions API.

    The prompt is sent as a single user message; the assistant text is
    returned stripped. API errors propagate to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if client is None:
            import openai

            client = openai.OpenAI(api_key=api_key, base_url=base_url)
        self._client = client
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if stop:
            kwargs["stop"] = stop

        out = self._client.chat.completions.create(**kwargs)
        text = out.choices[0].message.content or ""
        return text.strip()
