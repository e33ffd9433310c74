import logging
from unittest.mock import AsyncMock

import pytest

from refugee_bot.core.errors import UpstreamFailure
from refugee_bot.core.intents import OVERRIDE_INTENTS, classify_local
from refugee_bot.core.models import Intent, NLUResult
from refugee_bot.core.resolver import SOURCE_DIALOGFLOW, SOURCE_KEYWORDS, IntentResolver


@pytest.mark.parametrize(
    "text, expected",
    [
        ("How do I register with OPM?", Intent.REGISTRATION),
        ("I am hungry", Intent.FOOD),
        ("I need a place to stay tonight", Intent.SHELTER),
        ("My child is sick", Intent.HEALTHCARE),
        ("Emergency!", Intent.EMERGENCY_CONTACTS),
        ("Hello", Intent.WELCOME),
        ("   START  ", Intent.WELCOME),
        ("qwerty", Intent.FALLBACK),
    ],
)
def test_keyword_groups(text, expected):
    assert classify_local(text) == expected


def test_food_wins_over_emergency():
    assert classify_local("emergency food please") == Intent.FOOD


def test_registration_wins_over_everything():
    assert classify_local("food shelter doctor registration") == Intent.REGISTRATION


@pytest.mark.asyncio
async def test_without_client_uses_keywords():
    resolver = IntentResolver(None)
    resolution = await resolver.resolve("where can I find food", "user-abc")
    assert resolution.intent == Intent.FOOD
    assert resolution.source == SOURCE_KEYWORDS
    assert resolver.remote_enabled is False


@pytest.mark.asyncio
async def test_override_intent_dispatches_locally():
    nlu = AsyncMock()
    nlu.detect_intent.return_value = NLUResult(
        intent_name="find_shelter", fulfillment_text="Generic shelter text"
    )
    resolver = IntentResolver(nlu)

    resolution = await resolver.resolve("somewhere to sleep?", "user-abc")

    nlu.detect_intent.assert_awaited_once_with("somewhere to sleep?", "user-abc")
    assert resolution.intent == Intent.SHELTER
    assert resolution.source == SOURCE_DIALOGFLOW
    assert resolution.is_passthrough is False


def test_all_override_names_map_to_data_intents():
    assert set(OVERRIDE_INTENTS.values()) == {
        Intent.REGISTRATION,
        Intent.FOOD,
        Intent.SHELTER,
        Intent.HEALTHCARE,
        Intent.EMERGENCY_CONTACTS,
    }


@pytest.mark.asyncio
async def test_other_intent_passes_fulfillment_text_through():
    nlu = AsyncMock()
    nlu.detect_intent.return_value = NLUResult(intent_name="smalltalk.thanks", fulfillment_text="You're welcome!")
    resolver = IntentResolver(nlu)

    resolution = await resolver.resolve("thanks", "user-abc")

    assert resolution.is_passthrough is True
    assert resolution.fulfillment_text == "You're welcome!"
    assert resolution.nlu_intent_name == "smalltalk.thanks"


@pytest.mark.asyncio
async def test_nlu_failure_falls_back_to_keywords(caplog):
    nlu = AsyncMock()
    nlu.detect_intent.side_effect = UpstreamFailure("dialogflow", "503 Service Unavailable")
    resolver = IntentResolver(nlu)

    with caplog.at_level(logging.ERROR):
        resolution = await resolver.resolve("I need a doctor", "user-abc")

    assert resolution == IntentResolver(None).resolve_locally("I need a doctor")
    assert resolution.intent == Intent.HEALTHCARE
    assert "using keyword fallback" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_nlu_error_also_falls_back():
    nlu = AsyncMock()
    nlu.detect_intent.side_effect = RuntimeError("boom")
    resolution = await IntentResolver(nlu).resolve("hello", "user-abc")
    assert resolution.intent == Intent.WELCOME
    assert resolution.source == SOURCE_KEYWORDS


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "intent_name, expected",
    [
        ("Default Welcome Intent", Intent.WELCOME),
        ("welcome", Intent.WELCOME),
        ("Default Fallback Intent", Intent.FALLBACK),
        (None, Intent.FALLBACK),
    ],
)
async def test_passthrough_welcome_names(intent_name, expected):
    nlu = AsyncMock()
    nlu.detect_intent.return_value = NLUResult(intent_name=intent_name, fulfillment_text="Hi there!")

    resolution = await IntentResolver(nlu).resolve("hey", "user-abc")

    assert resolution.intent == expected
    assert resolution.fulfillment_text == "Hi there!"
