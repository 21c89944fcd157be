from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config import Configuration
from models import CompanionCategory
from services.reasoner import (
    CALL_FAILED_FALLBACK,
    EMPTY_RESPONSE_FALLBACK,
    MISSING_KEY_FALLBACK,
    ReasonGenerator,
    build_prompt,
)


def _fake_genai(**kwargs) -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(**kwargs)
    return client


def test_build_prompt_embeds_inputs_and_strips_markup() -> None:
    prompt = build_prompt("감천문화마을", "알록달록한 집들<br />골목 산책", CompanionCategory.FAMILY)
    assert "장소 이름: 감천문화마을" in prompt
    assert "동행인 유형: 가족" in prompt
    assert "<br" not in prompt
    assert "골목 산책" in prompt
    assert "2~3문장" in prompt


def test_build_prompt_truncates_long_overview() -> None:
    prompt = build_prompt("A", "가" * 50, CompanionCategory.SOLO, max_chars=10)
    assert "가" * 10 + "..." in prompt
    assert "가" * 11 not in prompt


@pytest.mark.asyncio
async def test_missing_key_returns_instructional_fallback() -> None:
    with patch("services.reasoner.genai.Client") as client_cls:
        result = await ReasonGenerator(Configuration()).generate("A", "desc", CompanionCategory.COUPLE)
    assert result.text == MISSING_KEY_FALLBACK
    assert result.is_fallback
    client_cls.assert_not_called()


@pytest.mark.asyncio
async def test_generated_text_is_returned() -> None:
    fake = _fake_genai(return_value=SimpleNamespace(text="  노을이 멋진 곳이에요.  "))
    cfg = Configuration(gemini_api_key="g-key", llm_model_id="gemini-test")
    result = await ReasonGenerator(cfg, client=fake).generate("A", "desc", CompanionCategory.FRIENDS)

    assert result.text == "노을이 멋진 곳이에요."
    assert result.source == "generated"
    kwargs = fake.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert "동행인 유형: 친구" in kwargs["contents"]


@pytest.mark.asyncio
async def test_empty_response_uses_empty_fallback() -> None:
    fake = _fake_genai(return_value=SimpleNamespace(text=None))
    gen = ReasonGenerator(Configuration(gemini_api_key="g-key"), client=fake)
    assert await gen.generate_reason("A", "desc", CompanionCategory.SOLO) == EMPTY_RESPONSE_FALLBACK


@pytest.mark.asyncio
async def test_call_failure_uses_failure_fallback() -> None:
    fake = _fake_genai(side_effect=RuntimeError("quota exceeded"))
    gen = ReasonGenerator(Configuration(gemini_api_key="g-key"), client=fake)
    result = await gen.generate("A", "desc", CompanionCategory.SOLO)
    assert result.text == CALL_FAILED_FALLBACK
    assert result.source == "call_failed"
    assert CALL_FAILED_FALLBACK != EMPTY_RESPONSE_FALLBACK


@pytest.mark.asyncio
async def test_generic_api_key_builds_client() -> None:
    fake = _fake_genai(return_value=SimpleNamespace(text="좋아요"))
    with patch("services.reasoner.genai.Client", return_value=fake) as client_cls:
        gen = ReasonGenerator(Configuration(api_key=" shared "))
        assert await gen.generate_reason("A", "desc", CompanionCategory.COUPLE) == "좋아요"
    client_cls.assert_called_once_with(api_key="shared")
