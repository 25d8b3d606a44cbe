# src/llm_stack/config.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class ModelConfig:
    """Minimal model config used by LLMBackend / LlamaCppBackend."""

    # No model path means fallback-only replies (ai_enabled == False).
    model_path: Optional[str] = None

    # generation parameters
    reply_max_tokens: int = 80
    proactive_max_tokens: int = 50
    temperature: float = 0.8

    # context / performance knobs
    n_ctx: int = 2048
    n_gpu_layers: int = 0
    n_threads: Optional[int] = None

    # a reply slower than this is replaced by the fallback
    timeout_s: float = 15.0
    history_limit: int = 20

    stop: Optional[List[str]] = None

    @property
    def enabled(self) -> bool:
        return bool(self.model_path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        """Convenience constructor from a plain dict (e.g. YAML)."""
        return cls(
            model_path=data.get("model_path"),
            reply_max_tokens=data.get("reply_max_tokens", 80),
            proactive_max_tokens=data.get("proactive_max_tokens", 50),
            temperature=data.get("temperature", 0.8),
            n_ctx=data.get("n_ctx", 2048),
            n_gpu_layers=data.get("n_gpu_layers", 0),
            n_threads=data.get("n_threads"),
            timeout_s=data.get("timeout_s", 15.0),
            history_limit=data.get("history_limit", 20),
            stop=data.get("stop"),
        )
