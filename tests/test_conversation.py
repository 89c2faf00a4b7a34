import random
from datetime import datetime

import pytest

from arcad_assistant.conversation import (
    CAPABILITY,
    CAPABILITY_RESPONSES,
    COMPOUND_GREETING,
    GRATITUDE,
    GREETING,
    GREETING_RESPONSES,
    TIME_OF_DAY,
    TIME_OF_DAY_RESPONSES,
    WELL_BEING,
    ConversationalResponder,
    check_conversational,
    time_of_day,
)


def responder_at(hour: int) -> ConversationalResponder:
    return ConversationalResponder(clock=lambda: datetime(2024, 5, 1, hour, 0), rng=random.Random(7))


@pytest.mark.parametrize(
    "text", ["hi", "Hello!", "hey there", "HOWDY", "hola", "hi arcad", "yo", "oh hello", "well hi", "ok hey", "Oh well, hello!"]
)
def test_simple_greetings(text):
    match = check_conversational(text)
    assert match.is_conversational
    assert match.kind == GREETING
    assert match.response in GREETING_RESPONSES


@pytest.mark.parametrize("hour,period", [(8, "morning"), (13, "afternoon"), (21, "evening")])
def test_time_of_day_reply_follows_clock_not_phrase(hour, period):
    match = responder_at(hour).check("Good morning!")
    assert match.kind == TIME_OF_DAY
    assert match.response in TIME_OF_DAY_RESPONSES[period]


def test_time_of_day_boundaries():
    assert time_of_day(11) == "morning"
    assert time_of_day(12) == "afternoon"
    assert time_of_day(17) == "evening"


@pytest.mark.parametrize(
    "text,kind",
    [
        ("How are you?", WELL_BEING),
        ("hey, how's it going", WELL_BEING),
        ("What can you do?", CAPABILITY),
        ("who are you", CAPABILITY),
        ("Thanks!", GRATITUDE),
        ("thank you so much", GRATITUDE),
        ("hello my friend", COMPOUND_GREETING),
    ],
)
def test_small_talk_categories(text, kind):
    match = responder_at(10).check(text)
    assert match.is_conversational
    assert match.kind == kind
    assert match.response


def test_capability_reply_comes_from_candidates():
    assert responder_at(10).check("what can you do").response in CAPABILITY_RESPONSES


@pytest.mark.parametrize(
    "text",
    [
        "",
        "What's new this year?",
        "Hello, what is ARCAD-Skipper?",
        "hi, tell me about your products",
        "thanks, now compare ARCAD-Skipper and ARCAD-Observer",
        "history of IBM i modernization",
        "what are your products",
        "how do you say hello",
    ],
)
def test_real_questions_are_not_small_talk(text):
    assert not responder_at(10).check(text).is_conversational
