# src/llm_stack/responder.py
"""
Response generator for the companion's chat.

Wraps an optional LLMBackend with:
- a bounded conversation history (user lines + companion replies)
- a fixed companion persona prompt
- length clipping (2 sentences for replies, 1 for proactive comments)
- a deterministic, pattern-matched fallback used whenever the backend is
  missing, slow, or errors

Backend calls are blocking, so they run in a worker thread under a timeout;
the event loop (and the arbitration tick) never waits on them.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import random
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Pattern, Tuple

from .backend import ChatMessage, LlamaCppBackend, LLMBackend
from .config import ModelConfig

logger = logging.getLogger(__name__)


SYSTEM_PROMPT_TEMPLATE = """\
You are {name}, a Minecraft companion. You are literally in the game with the player: \
following them, mining ores, and protecting them from mobs.

Personality: chill older sibling who genuinely loves Minecraft. Never preachy.

Rules:
- Max 2 short sentences (this is game chat)
- Reference what's actually happening: mining, mobs, exploring, building
- Celebrate finds naturally ("DIAMONDS let's go")
- If asked to do something: "on it" / "right behind you" / "already on it"
- Casual tips only, never lectures
- Age-appropriate and warm"""

# First match wins.
FALLBACK_RULES: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"diamond", re.I), "DIAMONDS!! on my way"),
    (re.compile(r"follow|come here", re.I), "right behind you!"),
    (re.compile(r"mine|dig", re.I), "already scanning for ore nearby"),
    (re.compile(r"help|how do", re.I), "on it! what do you need?"),
    (re.compile(r"fight|kill|attack", re.I), "on it, I got this mob"),
    (re.compile(r"build|make|craft", re.I), "let's do it! what materials do we have?"),
    (re.compile(r"die|died|lost my stuff", re.I), "oof, let's go get your stuff back"),
    (re.compile(r"food|hungry", re.I), "yeah we should find food soon"),
    (re.compile(r"creeper|zombie|skeleton", re.I), "saw it, I'll handle it"),
]
DEFAULT_FALLBACK = "yeah! what do you want to do?"

PROACTIVE_FALLBACKS = [
    "what are we looking for next?",
    "we should find a cave and go deeper",
    "want to start building something?",
    "we need more torches soon",
    "I can hear mobs below us",
]

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def fallback_reply(message: str) -> str:
    """Deterministic reply for when no model is available."""
    for pattern, reply in FALLBACK_RULES:
        if pattern.search(message):
            return reply
    return DEFAULT_FALLBACK


def clip_sentences(text: str, limit: int) -> str:
    """Keep at most `limit` sentences of a single-line reply."""
    line = " ".join(text.split())
    sentences = [s for s in _SENTENCE_END.split(line) if s]
    return " ".join(sentences[:limit]).strip()


@dataclass
class ChatTurn:
    role: str       # "user" | "assistant"
    content: str


class ResponseGenerator:
    """
    Chat replies and proactive comments for the companion.

    `backend` may be None: every call then uses the fallback path and
    `ai_enabled` is False.
    """

    def __init__(
        self,
        backend: Optional[LLMBackend],
        config: Optional[ModelConfig] = None,
        *,
        bot_name: str = "Alex",
        rng: Optional[random.Random] = None,
    ) -> None:
        self._backend = backend
        self._config = config or ModelConfig()
        self._bot_name = bot_name
        self._rng = rng or random.Random()
        self._system_prompt = SYSTEM_PROMPT_TEMPLATE.format(name=bot_name)
        self._history: List[ChatTurn] = []

    @property
    def ai_enabled(self) -> bool:
        return self._backend is not None

    @property
    def history(self) -> List[ChatTurn]:
        return list(self._history)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def respond(self, username: str, message: str) -> str:
        """Reply to one chat line (never raises)."""
        self._remember("user", f"{username}: {message}")

        if self._backend is None:
            reply = fallback_reply(message)
            self._remember("assistant", reply)
            return reply

        try:
            text = await self._generate(
                self._conversation(),
                max_tokens=self._config.reply_max_tokens,
            )
        except Exception:
            logger.warning("Reply generation failed; using fallback", exc_info=True)
            return fallback_reply(message)

        reply = clip_sentences(text, 2)
        if not reply:
            return fallback_reply(message)
        self._remember("assistant", reply)
        return reply

    async def proactive(self, context: Mapping[str, Any]) -> Optional[str]:
        """One casual unprompted comment, or None if generation failed."""
        if self._backend is None:
            return self._rng.choice(PROACTIVE_FALLBACKS)

        messages = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": f"Say one casual in-game comment based on: {json.dumps(dict(context))}"},
        ]
        try:
            text = await self._generate(messages, max_tokens=self._config.proactive_max_tokens)
        except Exception:
            logger.warning("Proactive comment generation failed", exc_info=True)
            return None
        return clip_sentences(text, 1) or None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _remember(self, role: str, content: str) -> None:
        self._history.append(ChatTurn(role=role, content=content))
        limit = self._config.history_limit
        if len(self._history) > limit:
            self._history = self._history[-limit:]

    def _conversation(self) -> List[ChatMessage]:
        messages: List[ChatMessage] = [{"role": "system", "content": self._system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in self._history)
        return messages

    async def _generate(self, messages: List[ChatMessage], *, max_tokens: int) -> str:
        assert self._backend is not None
        call = functools.partial(
            self._backend.chat,
            messages,
            max_tokens=max_tokens,
            temperature=self._config.temperature,
            stop=self._config.stop or ["\n"],
        )
        return await asyncio.wait_for(asyncio.to_thread(call), timeout=self._config.timeout_s)


def build_response_generator(
    config: ModelConfig,
    *,
    bot_name: str,
    rng: Optional[random.Random] = None,
) -> ResponseGenerator:
    """
    Build a ResponseGenerator from config.

    A configured model that fails to load degrades to fallback-only replies.
    """
    backend: Optional[LLMBackend] = None
    if config.enabled:
        try:
            backend = LlamaCppBackend(config)
        except Exception:
            logger.exception("Could not load model %s; using fallback replies", config.model_path)
    return ResponseGenerator(backend, config, bot_name=bot_name, rng=rng)


__all__ = [
    "ResponseGenerator",
    "ChatTurn",
    "fallback_reply",
    "clip_sentences",
    "build_response_generator",
    "PROACTIVE_FALLBACKS",
]
