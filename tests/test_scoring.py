"""Tests for model-graded scoring."""

import pytest

from promptcopilot.core.engine.scoring import LLMScorer, parse_score
from promptcopilot.core.exceptions import MissingCredentialError, ScoreParseError, UpstreamError
from promptcopilot.core.llm.credentials import Credentials
from promptcopilot.core.model import Provider


@pytest.fixture
def scorer(registry, system_config):
    return LLMScorer(registry=registry, system_config=system_config)


@pytest.mark.asyncio
async def test_score_success(scorer, providers, credentials):
    score, usage = await scorer.score("Summarise the report.", credentials)

    assert (score.clarity, score.specificity, score.structure, score.total) == (25, 20, 30, 75)
    assert usage.provider == "groq"
    assert usage.metadata["operation"] == "scoring"

    call = providers[Provider.GROQ].calls[0]
    assert call["temperature"] == 0.0
    assert "Summarise the report." in call["prompt"]


@pytest.mark.asyncio
async def test_score_fenced_json(scorer, providers, credentials):
    providers[Provider.GROQ].responder = lambda prompt: (
        '```json\n{"clarity": 10, "specificity": 10, "structure": 10, "total": 30}\n```'
    )

    score, _ = await scorer.score("p", credentials)

    assert score.total == 30


@pytest.mark.asyncio
async def test_unparseable_reply_raises(scorer, providers, credentials):
    providers[Provider.GROQ].responder = lambda prompt: "I think it is pretty good!"

    with pytest.raises(ScoreParseError) as exc_info:
        await scorer.score("p", credentials)
    assert isinstance(exc_info.value, UpstreamError)
    assert exc_info.value.provider == "groq"


@pytest.mark.asyncio
async def test_upstream_failure_propagates(scorer, providers, credentials):
    providers[Provider.GROQ].fail = True
    with pytest.raises(UpstreamError):
        await scorer.score("p", credentials)


@pytest.mark.asyncio
async def test_missing_key(scorer):
    with pytest.raises(MissingCredentialError, match="required for scoring"):
        await scorer.score("p", Credentials())


def test_parse_score_clamps_and_recomputes_total():
    score = parse_score('{"clarity": 50, "specificity": 12.4, "structure": 41, "total": 500}')
    assert (score.clarity, score.specificity, score.structure, score.total) == (30, 12, 40, 82)


@pytest.mark.parametrize(
    "content",
    [
        "",
        "[1, 2, 3]",
        '{"clarity": 10, "specificity": 10, "structure": 10}',
        '{"clarity": "high", "specificity": 10, "structure": 10, "total": 30}',
        "```\n```",
    ],
)
def test_parse_score_rejects_bad_replies(content):
    with pytest.raises(ScoreParseError):
        parse_score(content)


@pytest.mark.parametrize(
    "content",
    [
        '{"clarity": Infinity, "specificity": 10, "structure": 10, "total": 30}',
        '{"clarity": 10, "specificity": NaN, "structure": 10, "total": 30}',
        '{"clarity": 10, "specificity": 10, "structure": 1e999, "total": 30}',
    ],
)
def test_parse_score_rejects_non_finite_values(content):
    with pytest.raises(ScoreParseError, match="finite"):
        parse_score(content)
