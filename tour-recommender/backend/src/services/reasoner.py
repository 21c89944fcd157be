from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from google import genai
from loguru import logger

from config import Configuration
from models import CompanionCategory
from utils import clean_overview

MISSING_KEY_FALLBACK = (
    "AI 추천 사유를 생성하려면 GEMINI_API_KEY(또는 API_KEY) 환경 변수를 설정해주세요."
)
EMPTY_RESPONSE_FALLBACK = "이 장소의 매력을 직접 방문하여 느껴보세요!"
CALL_FAILED_FALLBACK = "당신에게 어울리는 특별한 매력을 가진 장소입니다."

PROMPT_TEMPLATE = """\
장소 이름: {name}
장소 설명: {overview}
동행인 유형: {companion}

위 정보를 바탕으로, 해당 동행인(가족, 커플, 친구, 나홀로 등)과 함께 이 장소를 방문해야 하는 특별한 이유를 2~3문장 내외로 친근하고 설득력 있게 작성해주세요.
전문 가이드처럼 말하되, 너무 딱딱하지 않게 한국어로 작성해주세요.
"""


@dataclass
class ReasonResult:
    text: str
    source: str  # "generated" | "missing_key" | "empty_response" | "call_failed"

    @property
    def is_fallback(self) -> bool:
        return self.source != "generated"


def build_prompt(
    place_name: str,
    overview: str,
    companion: CompanionCategory,
    *,
    max_chars: Optional[int] = None,
) -> str:
    label = companion.value if isinstance(companion, CompanionCategory) else str(companion)
    return PROMPT_TEMPLATE.format(
        name=place_name,
        overview=clean_overview(overview, limit=max_chars),
        companion=label,
    )


class ReasonGenerator:
    """Writes a companion-tailored recommendation blurb with Gemini.

    ``generate`` never raises: a missing key, an empty answer or a failed
    call each map to a fixed fallback sentence.
    """

    def __init__(self, cfg: Configuration, client: Any = None) -> None:
        self.cfg = cfg
        self._client = client

    def _ensure_client(self) -> Optional[Any]:
        if self._client is not None:
            return self._client
        api_key = self.cfg.resolve_llm_credential()
        if not api_key:
            return None
        self._client = genai.Client(api_key=api_key)
        logger.debug("Reasoner using Gemini model: {}", self.cfg.llm_model_id)
        return self._client

    async def generate(
        self, place_name: str, overview: str, companion: CompanionCategory
    ) -> ReasonResult:
        if self._client is None and not self.cfg.resolve_llm_credential():
            return ReasonResult(MISSING_KEY_FALLBACK, "missing_key")

        prompt = build_prompt(place_name, overview, companion, max_chars=self.cfg.llm_overview_chars)
        try:
            client = self._ensure_client()
            response = await client.aio.models.generate_content(
                model=self.cfg.llm_model_id,
                contents=prompt,
            )
            text = (response.text or "").strip()
        except Exception as exc:
            logger.warning("Gemini reason generation failed for {}: {!r}", place_name, exc)
            return ReasonResult(CALL_FAILED_FALLBACK, "call_failed")

        if not text:
            logger.warning("Gemini returned an empty reason for {}", place_name)
            return ReasonResult(EMPTY_RESPONSE_FALLBACK, "empty_response")
        return ReasonResult(text, "generated")

    async def generate_reason(
        self, place_name: str, overview: str, companion: CompanionCategory
    ) -> str:
        return (await self.generate(place_name, overview, companion)).text
