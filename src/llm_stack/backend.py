# src/llm_stack/backend.py
"""
Backend interface and concrete implementation for local LLM engines.
Currently backed by llama_cpp chat completion over GGUF models.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from .config import ModelConfig

# {"role": "system" | "user" | "assistant", "content": "..."}
ChatMessage = Dict[str, str]


class LLMBackend(Protocol):
    """Simple interface around a local chat model."""

    def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
    ) -> str:
        """Return the assistant's next message for the conversation."""
        ...


class LlamaCppBackend:
    """
    Chat backend using llama_cpp and a local GGUF model.

    The model's own chat template formats the messages. Calls are blocking;
    callers run them off the event loop.
    """

    def __init__(self, cfg: ModelConfig) -> None:
        if not cfg.model_path:
            raise ValueError("LlamaCppBackend requires ModelConfig.model_path")

        # Imported here so fallback-only deployments never load the native lib.
        from llama_cpp import Llama

        options: Dict[str, Any] = dict(
            model_path=cfg.model_path,
            n_ctx=cfg.n_ctx,
            n_gpu_layers=cfg.n_gpu_layers,
            verbose=False,
        )
        if cfg.n_threads is not None:
            options["n_threads"] = cfg.n_threads

        self._llm = Llama(**options)

    def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
    ) -> str:
        completion = self._llm.create_chat_completion(
            messages=list(messages),
            max_tokens=max_tokens,
            temperature=temperature,
            stop=stop,
        )
        content = completion["choices"][0]["message"].get("content") or ""
        return content.strip()
