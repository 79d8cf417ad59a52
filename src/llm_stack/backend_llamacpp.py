# src/llm_stack/backend_llamacpp.py

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from llama_cpp import Llama

from .backend import LLMBackend
from .config import OracleConfig


class LlamaCppBackend(LLMBackend):
    """LLMBackend implementation using llama.cpp local inference.

    Construct from an OracleConfig with provider "local":

        backend = LlamaCppBackend(OracleConfig(provider="local", model_path="m.gguf"))

    Decision prompts are short, so a small context window is enough.
    """

    def __init__(self, config: OracleConfig) -> None:
        if not config.model_path:
            raise ValueError("LlamaCppBackend requires OracleConfig.model_path")

        path = Path(config.model_path)
        if not path.exists():
            raise FileNotFoundError(path)

        # Offload as many layers as VRAM allows unless told otherwise.
        gpu_layers = 9999 if config.n_gpu_layers is None else config.n_gpu_layers
        n_threads = config.n_threads or max(1, (os.cpu_count() or 1) - 1)

        self._llm = Llama(
            model_path=str(path),
            n_ctx=config.n_ctx,
            n_gpu_layers=gpu_layers,
            n_threads=n_threads,
            verbose=False,
        )

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Generate text using chat-completion style calls.

        system_prompt -> system message, prompt -> user message.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        out = self._llm.create_chat_completion(
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stop=stop or [],
        )
        text = out["choices"][0]["message"]["content"] or ""
        return text.strip()
