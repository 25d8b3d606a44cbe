# tests for the response generator with fake backends
# tests/test_llm_stack_responder.py

from __future__ import annotations

import asyncio
import random
import time
from typing import Dict, List, Optional, Sequence

from llm_stack.config import ModelConfig
from llm_stack.responder import (
    DEFAULT_FALLBACK,
    PROACTIVE_FALLBACKS,
    ResponseGenerator,
    build_response_generator,
    clip_sentences,
    fallback_reply,
)


class FakeBackend:
    def __init__(self, text: str = "", *, error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.conversations: List[List[Dict[str, str]]] = []
        self.max_tokens: List[int] = []

    def chat(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
    ) -> str:
        self.conversations.append(list(messages))
        self.max_tokens.append(max_tokens)
        assert messages[0]["role"] == "system"
        assert "Minecraft companion" in messages[0]["content"]
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


def test_fallback_rules():
    assert fallback_reply("I found DIAMONDS") == "DIAMONDS!! on my way"
    assert fallback_reply("come here please") == "right behind you!"
    assert fallback_reply("a creeper!!") == "saw it, I'll handle it"
    assert fallback_reply("hello there") == DEFAULT_FALLBACK


def test_clip_sentences():
    assert clip_sentences("One. Two! Three?", 2) == "One. Two!"
    assert clip_sentences("  spaced   out  ", 1) == "spaced out"


def test_without_backend_every_reply_is_fallback():
    generator = ResponseGenerator(None, rng=random.Random(1))

    reply = asyncio.run(generator.respond("Steve", "let's dig down"))
    comment = asyncio.run(generator.proactive({"task": "following", "y": 40, "health": 20}))

    assert generator.ai_enabled is False
    assert reply == "already scanning for ore nearby"
    assert comment in PROACTIVE_FALLBACKS
    assert [t.role for t in generator.history] == ["user", "assistant"]


def test_backend_reply_is_clipped_and_remembered():
    backend = FakeBackend("on it. right behind you. also this third sentence.")
    generator = ResponseGenerator(backend, ModelConfig(), bot_name="Alex")

    reply = asyncio.run(generator.respond("Steve", "follow me"))

    assert generator.ai_enabled is True
    assert reply == "on it. right behind you."
    assert backend.max_tokens == [80]
    assert backend.conversations[0][-1] == {"role": "user", "content": "Steve: follow me"}
    assert generator.history[-1].content == reply


def test_backend_error_uses_fallback():
    backend = FakeBackend(error=RuntimeError("model crashed"))
    generator = ResponseGenerator(backend)

    assert asyncio.run(generator.respond("Steve", "I'm hungry")) == "yeah we should find food soon"
    assert asyncio.run(generator.proactive({"task": "mining"})) is None


def test_slow_backend_times_out_to_fallback():
    backend = FakeBackend("too late", delay=0.3)
    generator = ResponseGenerator(backend, ModelConfig(timeout_s=0.05))

    assert asyncio.run(generator.respond("Steve", "hello")) == DEFAULT_FALLBACK


def test_proactive_uses_smaller_budget_and_one_sentence():
    backend = FakeBackend("we need torches. lots of them.")
    generator = ResponseGenerator(backend)

    comment = asyncio.run(generator.proactive({"task": "following", "y": 12, "health": 18}))

    assert comment == "we need torches."
    assert backend.max_tokens == [50]
    assert '"y": 12' in backend.conversations[0][-1]["content"]


def test_history_is_bounded():
    generator = ResponseGenerator(None, ModelConfig(history_limit=4))

    async def chat() -> None:
        for i in range(5):
            await generator.respond("Steve", f"message {i}")

    asyncio.run(chat())

    history = generator.history
    assert len(history) == 4
    assert history[0].content == "Steve: message 3"


def test_unloadable_model_degrades_to_fallback(tmp_path):
    config = ModelConfig(model_path=str(tmp_path / "missing.gguf"))

    generator = build_response_generator(config, bot_name="Alex")

    assert generator.ai_enabled is False
    assert asyncio.run(generator.respond("Steve", "diamond?")) == "DIAMONDS!! on my way"
