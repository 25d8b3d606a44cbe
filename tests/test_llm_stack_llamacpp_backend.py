# tests for LlamaCppBackend construction
# tests/test_llm_stack_llamacpp_backend.py

from typing import Any, Dict, List

import pytest

try:
    import llama_cpp  # type: ignore
except ImportError:
    pytest.skip("llama_cpp not installed; skipping LLM backend tests in CI", allow_module_level=True)

from llm_stack.backend import LlamaCppBackend
from llm_stack.config import ModelConfig


class FakeLlama:
    instances: List["FakeLlama"] = []

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.calls: List[Dict[str, Any]] = []
        FakeLlama.instances.append(self)

    def create_chat_completion(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(kwargs)
        return {"choices": [{"message": {"role": "assistant", "content": " on it, right behind you \n"}}]}


def test_backend_requires_model_path():
    with pytest.raises(ValueError):
        LlamaCppBackend(ModelConfig())


def test_backend_passes_config_and_messages(monkeypatch):
    monkeypatch.setattr(llama_cpp, "Llama", FakeLlama)
    cfg = ModelConfig(model_path="/models/tiny.gguf", n_ctx=512, n_threads=2)
    messages = [
        {"role": "system", "content": "persona"},
        {"role": "user", "content": "Steve: hi"},
    ]

    backend = LlamaCppBackend(cfg)
    text = backend.chat(messages, max_tokens=80, temperature=0.8, stop=["\n"])

    llm = FakeLlama.instances[-1]
    assert llm.kwargs["model_path"] == "/models/tiny.gguf"
    assert llm.kwargs["n_ctx"] == 512
    assert llm.kwargs["n_threads"] == 2
    assert llm.calls[0]["messages"] == messages
    assert llm.calls[0]["max_tokens"] == 80
    assert text == "on it, right behind you"
