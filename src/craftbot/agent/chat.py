# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Inbound chat handling and rate-limited outbound chat.

``ChatResponder`` decides whether and what to reply; ``ChatOutbox`` is the
only place that actually sends, so the spam guard and the agent's liveness
check apply to every outgoing line (replies, announcements, ambient chat).
"""

from __future__ import annotations

import asyncio
import random
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from craftbot.agent.config import ChatConfig
from craftbot.agent.state import AgentState, Task, Trigger
from craftbot.llm.reply import ChatTurn, ReplyGenerator
from craftbot.logging import get_logger
from craftbot.world.base import WorldClient

if TYPE_CHECKING:
    from craftbot.persistence.base import PersistenceSink

logger = get_logger(__name__)

MENTION_REPLIES = (
    "yes {sender}? did you need something?",
    "hey {sender}! you called?",
    "what's up {sender}? how can i help?",
    "yes? i'm here {sender}!",
)

GENERIC_REPLIES = (
    "interesting {sender}! tell me more",
    "i see what you mean {sender}",
    "that sounds cool {sender}!",
    "nice one {sender}!",
    "what do you think about that {sender}?",
    "i agree with you {sender}",
    "that's a good point {sender}!",
    "yeah {sender}, exactly!",
    "cool {sender}! want to team up?",
    "awesome {sender}! how can i help?",
)

WELCOME_LINES = (
    "welcome to the server {sender}! hope you have fun here!",
    "hey {sender}! welcome! nice to meet you!",
    "welcome {sender}! this is a great server to play on!",
    "hi {sender}! welcome to our community!",
    "{sender} welcome! let me know if you need any help!",
)

AMBIENT_LINES = (
    "hey everyone! how is everyone doing today?",
    "this server has such a great community!",
    "anyone want to go mining together?",
    "just finished gathering some wood, feels productive!",
    "this game never gets old, love it!",
    "working on my crafting skills, still learning!",
    "anyone found any cool caves or structures lately?",
    "thanks for making this such a fun server to play on!",
    "what are you all building today?",
    "exploring is so much fun, found some interesting spots!",
    "love meeting new players here!",
    "anyone need help with anything? i am happy to assist!",
)

ACTIVITY_LINES = {
    Task.GATHERING_RESOURCE: "looking for trees to punch and get wood",
    Task.CRAFTING_INTERMEDIATE: "trying to craft a crafting table",
    Task.CRAFTING_TOOL: "working on making a pickaxe",
    Task.EXTRACTING_RESOURCE: "mining stone with my pickaxe",
    Task.EXPLORING: "just exploring the world and having fun",
    Task.FOLLOWING_TARGET: "following {target} around",
}

ACTIVITY_FALLBACK = "just playing like a normal player!"


@dataclass(frozen=True)
class KeywordRule:
    """One row of the keyword table. First substring match wins."""

    keyword: str
    replies: tuple[str, ...]
    trigger: str | None = None  # follow | explore | task
    task: Task | None = None
    gesture: str | None = None
    activity: bool = False

    def build_trigger(self, sender: str) -> Trigger | None:
        if self.trigger == "follow":
            return Trigger(kind="follow", target=sender)
        if self.trigger == "explore":
            return Trigger(kind="explore")
        if self.trigger == "task" and self.task is not None:
            return Trigger(kind="task", task=self.task)
        return None


KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        "hello",
        (
            "hey {sender}! good to see you!",
            "hello {sender}! how's it going?",
            "hi there {sender}! what's up?",
            "hey {sender}! nice to meet you!",
        ),
    ),
    KeywordRule(
        "hi",
        (
            "hi {sender}! how are you doing today?",
            "hey {sender}! what brings you here?",
            "hello {sender}! having fun on the server?",
            "hi there! i'm {me}, nice to meet you {sender}!",
        ),
    ),
    KeywordRule(
        "great",
        ("that's awesome {sender}!", "glad to hear that!", "nice! i'm doing pretty good too", "that's great to hear!"),
    ),
    KeywordRule("good", ("that's good to hear {sender}! i'm having a great time too",)),
    KeywordRule("help", ("what do you need help with {sender}? i'm always happy to help!",)),
    KeywordRule("what are you doing", (), activity=True),
    KeywordRule("stop following", ("alright {sender}, i'll go back to doing my own thing!",), trigger="explore"),
    KeywordRule("follow me", ("sure thing {sender}! i'll follow you around",), trigger="follow"),
    KeywordRule("stop", ("okay! back to exploring and crafting",), trigger="explore"),
    KeywordRule(
        "mine",
        ("sure {sender}! let's go mining together!",),
        trigger="task",
        task=Task.EXTRACTING_RESOURCE,
    ),
    KeywordRule("build", ("sounds amazing {sender}! what kind of build are you working on?",)),
    KeywordRule("food", ("i'm a bit hungry too {sender}! know any good food spots?",)),
    KeywordRule("creative", ("yes {sender}! i love creative mode for building amazing things!",)),
    KeywordRule(
        "dig",
        ("alright {sender}! time to dig some blocks!",),
        trigger="task",
        task=Task.EXTRACTING_RESOURCE,
    ),
    KeywordRule(
        "explore",
        ("great idea {sender}! let's explore the world together!",),
        trigger="explore",
    ),
    KeywordRule("come here", ("coming {sender}! on my way!",), trigger="follow"),
    KeywordRule("go", ("going {sender}! adventure time!",), trigger="explore"),
    KeywordRule(
        "wood",
        ("good thinking {sender}! let's get some wood!",),
        trigger="task",
        task=Task.GATHERING_RESOURCE,
    ),
    KeywordRule(
        "craft",
        ("yeah {sender}! crafting is so much fun. currently working on my tools",),
        trigger="task",
        task=Task.CRAFTING_INTERMEDIATE,
    ),
    KeywordRule("jump", ("jumping for you {sender}! :)",), gesture="jump"),
    KeywordRule("dance", ("dancing time! this is fun {sender}!",), gesture="dance"),
)


def match_keyword(text: str, rules: tuple[KeywordRule, ...] = KEYWORD_RULES) -> KeywordRule | None:
    lowered = text.lower()
    for rule in rules:
        if rule.keyword in lowered:
            return rule
    return None


class ChatOutbox:
    """Single sender of chat lines; owns ``AgentState.last_chat_at``."""

    def __init__(
        self,
        client: WorldClient,
        state: AgentState,
        config: ChatConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.state = state
        self.config = config
        self.clock = clock
        self.sent = 0

    def send(self, message: str) -> bool:
        if not message or not self.state.alive:
            return False
        now = self.clock()
        last = self.state.last_chat_at
        if last is not None and now - last < self.config.spam_guard_s:
            logger.debug("chat_suppressed", reason="spam_guard", message=message)
            return False
        try:
            self.client.chat(message)
        except Exception as e:
            logger.debug("chat_failed", error=str(e))
            return False
        self.state.last_chat_at = now
        self.sent += 1
        logger.info("chat_sent", message=message)
        return True


class ChatResponder:
    """Turns inbound chat into triggers and delayed replies."""

    def __init__(
        self,
        *,
        username: str,
        state: AgentState,
        outbox: ChatOutbox,
        config: ChatConfig,
        request: Callable[[Trigger], None],
        rng: random.Random,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        generator: ReplyGenerator | None = None,
        gesture: Callable[[str], Awaitable[Any]] | None = None,
        sink: PersistenceSink | None = None,
    ) -> None:
        self.username = username
        self.state = state
        self.outbox = outbox
        self.config = config
        self.request = request
        self.rng = rng
        self.clock = clock
        self.sleep = sleep
        self.generator = generator
        self.gesture = gesture
        self.sink = sink
        self._last_reply_at: float | None = None
        self._history: dict[str, deque[ChatTurn]] = {}
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._pending if not t.done())

    def history(self, sender: str) -> list[ChatTurn]:
        return list(self._history.get(sender, ()))

    def _remember(self, sender: str, role: str, text: str) -> None:
        window = self._history.get(sender)
        if window is None:
            window = self._history[sender] = deque(maxlen=self.config.history_turns)
        window.append(ChatTurn(role=role, text=text))

    def _in_cooldown(self, now: float) -> bool:
        for last in (self._last_reply_at, self.state.last_chat_at):
            if last is not None and now - last < self.config.reply_cooldown_s:
                return True
        return False

    def on_message(self, sender: str, text: str) -> str | None:
        """Handle one inbound message.

        Returns:
            Kind of reply scheduled (mention, keyword, generic) or None
        """
        if not self.state.alive or sender == self.username:
            return None
        logger.info("chat_received", sender=sender, text=text)
        self._remember(sender, "user", text)

        now = self.clock()
        if self._in_cooldown(now):
            logger.debug("reply_suppressed", reason="cooldown", sender=sender)
            return None

        if self.username.lower() in text.lower():
            delay = self.rng.uniform(*self.config.mention_delay_s)
            self._schedule(delay, sender, text, "mention", lambda: self._pick(MENTION_REPLIES, sender))
            return "mention"

        rule = match_keyword(text)
        if rule is not None:
            trigger = rule.build_trigger(sender)
            if trigger is not None:
                self.request(trigger)
            if rule.gesture and self.gesture is not None:
                self._track(asyncio.create_task(self._run_gesture(rule.gesture)))
            if self.rng.random() >= self.config.keyword_reply_probability:
                return None
            delay = self.rng.uniform(*self.config.keyword_delay_s)
            self._schedule(delay, sender, text, "keyword", lambda: self._keyword_reply(rule, sender))
            return "keyword"

        if self.rng.random() >= self.config.generic_reply_probability:
            return None
        delay = self.rng.uniform(*self.config.generic_delay_s)
        self._schedule(delay, sender, text, "generic", lambda: self._pick(GENERIC_REPLIES, sender))
        return "generic"

    def on_player_joined(self, name: str) -> bool:
        if not self.state.alive or not self.config.greet_joins or name == self.username:
            return False
        delay = self.rng.uniform(*self.config.welcome_delay_s)
        self._track(asyncio.create_task(self._deliver(delay, name, "", "welcome", lambda: self._pick(WELCOME_LINES, name))))
        return True

    def ambient(self) -> bool:
        """Periodic unprompted chat line."""
        last = self.state.last_chat_at
        if last is not None and self.clock() - last < self.config.ambient_quiet_s:
            return False
        if self.rng.random() >= self.config.ambient_probability:
            return False
        return self.outbox.send(self.rng.choice(AMBIENT_LINES))

    def activity_line(self) -> str:
        template = ACTIVITY_LINES.get(self.state.current_task, ACTIVITY_FALLBACK)
        return template.format(target=self.state.target_player or "someone")

    async def cancel_pending(self) -> None:
        tasks = [t for t in self._pending if not t.done() and t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._pending.clear()

    def _pick(self, lines: tuple[str, ...], sender: str) -> str:
        return self.rng.choice(lines).format(sender=sender, me=self.username)

    def _keyword_reply(self, rule: KeywordRule, sender: str) -> str:
        if rule.activity:
            return self.activity_line()
        return self._pick(rule.replies, sender)

    def _schedule(self, delay: float, sender: str, text: str, kind: str, fallback: Callable[[], str]) -> None:
        self._last_reply_at = self.clock()
        self._track(asyncio.create_task(self._deliver(delay, sender, text, kind, fallback)))

    def _track(self, task: asyncio.Task[None]) -> None:
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_gesture(self, name: str) -> None:
        try:
            await self.gesture(name)
        except Exception as e:
            logger.debug("gesture_failed", gesture=name, error=str(e))

    async def _generate(self, sender: str) -> str | None:
        try:
            reply = await self.generator.generate(
                sender=sender,
                me=self.username,
                history=self.history(sender),
                activity=self.activity_line(),
            )
        except Exception as e:
            logger.debug("reply_generation_failed", sender=sender, error=str(e))
            return None
        reply = (reply or "").strip()
        return reply or None

    async def _deliver(
        self,
        delay: float,
        sender: str,
        text: str,
        kind: str,
        fallback: Callable[[], str],
    ) -> None:
        await self.sleep(delay)
        if not self.state.alive:
            return
        message = None
        if self.generator is not None and kind in ("keyword", "generic"):
            message = await self._generate(sender)
            if not self.state.alive:
                return
        if message is None:
            message = fallback()
        if not self.outbox.send(message):
            return
        if kind != "welcome":
            self._remember(sender, "assistant", message)
        if self.sink is not None:
            self.sink.log_interaction(sender, kind, text, message)
