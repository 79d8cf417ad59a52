# src/llm_stack/config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


@dataclass
class OracleConfig:
    """
    Which backend drives the decision oracle, and how it generates.

    provider:
        "openai" - hosted chat completions (needs api_key)
        "local"  - llama.cpp on a GGUF file (needs model_path)
        None     - no oracle; the loop uses its fixed default action
    """

    provider: Optional[str] = None

    # openai
    api_key: Optional[str] = None
    model: str = DEFAULT_OPENAI_MODEL
    base_url: Optional[str] = None

    # local
    model_path: Optional[str] = None
    n_ctx: int = 2048
    n_gpu_layers: Optional[int] = None
    n_threads: Optional[int] = None

    # generation
    max_tokens: int = 50
    temperature: float = 0.7

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OracleConfig":
        """
        OPENAI_API_KEY enables the OpenAI backend; otherwise
        CLAWCRAFT_LOCAL_MODEL (a GGUF path) enables the local one.
        """
        env = os.environ if environ is None else environ

        api_key = env.get("OPENAI_API_KEY")
        if api_key:
            return cls(
                provider="openai",
                api_key=api_key,
                model=env.get("CLAWCRAFT_OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
                base_url=env.get("OPENAI_BASE_URL") or None,
            )

        model_path = env.get("CLAWCRAFT_LOCAL_MODEL")
        if model_path:
            return cls(provider="local", model_path=model_path)

        return cls()

