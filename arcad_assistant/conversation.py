"""Canned small-talk responses that bypass context fetching and the LLM."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .constants import SIMPLE_GREETINGS
from .utils import contains_phrase, normalize_text

GREETING = "greeting"
TIME_OF_DAY = "time_of_day"
WELL_BEING = "well_being"
CAPABILITY = "capability"
GRATITUDE = "gratitude"
COMPOUND_GREETING = "compound_greeting"

MAX_SMALL_TALK_WORDS = 8
MAX_COMPOUND_TAIL_WORDS = 3

GREETING_ADDRESSEES = {"there", "all", "everyone", "assistant", "arcad", "bot", "team", "friend"}
TIME_OF_DAY_PHRASES = ["good morning", "good afternoon", "good evening", "good day"]
WELL_BEING_PHRASES = [
    "how are you",
    "how are you doing",
    "how r u",
    "hows it going",
    "how is it going",
    "how do you do",
    "whats up",
    "how have you been",
]
CAPABILITY_PHRASES = [
    "what can you do",
    "what do you do",
    "who are you",
    "what are you",
    "how can you help",
    "what can you help with",
    "what are your capabilities",
]
GRATITUDE_PHRASES = [
    "thanks",
    "thank you",
    "thx",
    "ty",
    "thanks a lot",
    "much appreciated",
    "appreciate it",
    "cheers",
]
# Words that mean the message is really a question, not small talk.
QUESTION_SIGNALS = {"arcad", "product", "products", "compare", "price", "ibm", "devops", "list"}
QUESTION_WORDS = {"what", "how", "why", "which", "who", "when", "where", "can", "do", "does", "is", "are", "tell", "show"}

GREETING_RESPONSES = [
    "👋 Hello! I'm your ARCAD AI Assistant. I specialize in IBM i modernization and DevOps solutions. How can I help you today?",
    "Hi there! I'm the ARCAD AI Assistant, ready to help you explore our software solutions. What would you like to know?",
    "Hello! 👋 I'm here to assist you with ARCAD Software solutions. What can I tell you about our IBM i modernization tools?",
]
TIME_OF_DAY_RESPONSES: Dict[str, List[str]] = {
    "morning": [
        "Good morning! ☀️ I'm your ARCAD AI Assistant, ready to help you discover our IBM i modernization solutions.",
        "Good morning! Hope your day is going well. I'm here to assist you with any questions about ARCAD Software.",
        "Good morning! ☀️ Let me help you explore our DevOps and modernization tools for IBM i.",
    ],
    "afternoon": [
        "Good afternoon! 🌤️ I'm your ARCAD AI Assistant, here to help with any questions about our solutions.",
        "Good afternoon! Ready to assist you with ARCAD's IBM i modernization and DevOps tools.",
        "Good afternoon! 🌤️ Let's explore how ARCAD Software can help with your modernization needs.",
    ],
    "evening": [
        "Good evening! 🌙 I'm your ARCAD AI Assistant, ready to help you discover our solutions.",
        "Good evening! Let me assist you with any questions about ARCAD's modernization tools.",
        "Good evening! 🌙 How can I help you with your IBM i modernization journey today?",
    ],
}
WELL_BEING_RESPONSES = [
    "I'm doing great, thank you! 😊 I'm ready to help you learn about ARCAD's solutions for IBM i modernization and DevOps. What would you like to know?",
    "I'm excellent and fully prepared to assist you! Would you like to explore our software solutions or learn about specific products?",
    "I'm working perfectly and excited to help you! Shall we discuss how ARCAD's tools can support your modernization needs?",
]
CAPABILITY_RESPONSES = [
    "I'm specialized in helping you with ARCAD Software solutions! I can:\n"
    "• Explain our IBM i modernization tools\n"
    "• Provide product details and comparisons\n"
    "• Share technical information and best practices\n"
    "• Guide you through our DevOps solutions\n\n"
    "What would you like to explore?",
    "I'm your guide to ARCAD Software! I can help you:\n"
    "• Understand our product features\n"
    "• Compare different solutions\n"
    "• Learn about implementation approaches\n"
    "• Discover modernization strategies\n\n"
    "What interests you most?",
]
GRATITUDE_RESPONSES = [
    "You're welcome! 😊 Don't hesitate to ask if you need any more information about ARCAD's solutions.",
    "My pleasure! I'm always here to help you learn more about our IBM i modernization and DevOps tools.",
    "Glad I could help! Feel free to ask any other questions about ARCAD Software products.",
]


@dataclass(frozen=True)
class ConversationalMatch:
    """Result of the small-talk check."""
    is_conversational: bool
    response: Optional[str] = None
    kind: Optional[str] = None


NO_MATCH = ConversationalMatch(is_conversational=False)


def time_of_day(hour: int) -> str:
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


class ConversationalResponder:
    """Match greetings, well-being, capability, and gratitude messages."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()

    def check(self, question: str) -> ConversationalMatch:
        """Purpose: Decide whether a message is small talk and pick a canned reply.
        Inputs/Outputs: Input is the raw question; output is a ConversationalMatch.
        Side Effects / State: Reads the clock for time-of-day greetings and draws
            from the random source.
        Dependencies: Uses normalize_text and the phrase/response tables above.
        Failure Modes: None; unmatched text returns NO_MATCH.
        If Removed: Greetings cost a context fetch and an LLM call.
        Testing Notes: Inject a fixed clock and seeded Random for deterministic replies.
        """
        # Categories are checked in priority order; first match wins.
        normalized = normalize_text(question)
        if not normalized:
            return NO_MATCH
        words = normalized.split()

        if self._is_simple_greeting(words):
            return self._reply(GREETING, GREETING_RESPONSES)

        short = len(words) <= MAX_SMALL_TALK_WORDS and not (set(words) & QUESTION_SIGNALS)

        if short and self._is_suffix_greeting(words):
            return self._reply(GREETING, GREETING_RESPONSES)
        if short and _has_any_phrase(normalized, TIME_OF_DAY_PHRASES):
            period = time_of_day(self._clock().hour)
            return self._reply(TIME_OF_DAY, TIME_OF_DAY_RESPONSES[period])
        if short and _has_any_phrase(normalized, WELL_BEING_PHRASES):
            return self._reply(WELL_BEING, WELL_BEING_RESPONSES)
        if short and _has_any_phrase(normalized, CAPABILITY_PHRASES):
            return self._reply(CAPABILITY, CAPABILITY_RESPONSES)
        if short and _has_any_phrase(normalized, GRATITUDE_PHRASES):
            return self._reply(GRATITUDE, GRATITUDE_RESPONSES)
        if short and self._is_compound_greeting(words):
            return self._reply(COMPOUND_GREETING, GREETING_RESPONSES)
        return NO_MATCH

    def _is_simple_greeting(self, words: List[str]) -> bool:
        if len(words) == 1:
            return words[0] in SIMPLE_GREETINGS
        if len(words) == 2:
            first, last = words
            if first in SIMPLE_GREETINGS and last in GREETING_ADDRESSEES:
                return True
            if last in SIMPLE_GREETINGS and first in GREETING_ADDRESSEES:
                return True
        return False

    def _is_suffix_greeting(self, words: List[str]) -> bool:
        # "oh hello", "well hi": filler words followed by a greeting.
        if words[-1] not in SIMPLE_GREETINGS:
            return False
        head = words[:-1]
        if set(head) & QUESTION_WORDS:
            return False
        return 0 < len(head) <= MAX_COMPOUND_TAIL_WORDS

    def _is_compound_greeting(self, words: List[str]) -> bool:
        if words[0] not in SIMPLE_GREETINGS:
            return False
        tail = words[1:]
        if set(tail) & QUESTION_WORDS:
            return False
        return 0 < len(tail) <= MAX_COMPOUND_TAIL_WORDS

    def _reply(self, kind: str, candidates: List[str]) -> ConversationalMatch:
        return ConversationalMatch(is_conversational=True, response=self._rng.choice(candidates), kind=kind)


def _has_any_phrase(normalized: str, phrases: List[str]) -> bool:
    return any(contains_phrase(normalized, phrase) for phrase in phrases)


_default_responder = ConversationalResponder()


def check_conversational(question: str) -> ConversationalMatch:
    return _default_responder.check(question)
