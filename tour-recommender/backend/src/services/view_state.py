from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from loguru import logger

from errors import ErrorKind, SETUP_KINDS, TourError, invalid_query
from models import CompanionCategory, CoordinateQuery, KeywordQuery, Recommendation, SearchQuery
from services.recommender import TourRecommender

GENERIC_ERROR = "추천 정보를 불러오는 중 알 수 없는 오류가 발생했습니다."


@dataclass
class TourViewState:
    query_text: str = ""
    companion: CompanionCategory = CompanionCategory.COUPLE
    is_loading: bool = False
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    results: List[Recommendation] = field(default_factory=list)

    @property
    def show_setup_help(self) -> bool:
        return self.error_kind in SETUP_KINDS

    def start_search(self) -> None:
        self.is_loading = True
        self.error = None
        self.error_kind = None
        self.results = []

    def succeed(self, results: List[Recommendation]) -> None:
        self.results = list(results)
        self.is_loading = False

    def fail(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        self.results = []
        self.error = message
        self.error_kind = kind
        self.is_loading = False


def select_query(text: Optional[str], coords: Optional[Tuple[float, float]]) -> SearchQuery:
    """Typed text wins over device coordinates; neither is an invalid query."""
    if text and text.strip():
        return KeywordQuery(text.strip())
    if coords is not None:
        latitude, longitude = coords
        return CoordinateQuery(latitude=latitude, longitude=longitude)
    raise invalid_query()


async def run_search(
    state: TourViewState,
    recommender: TourRecommender,
    coords: Optional[Tuple[float, float]] = None,
) -> TourViewState:
    try:
        query = select_query(state.query_text, coords)
    except TourError as exc:
        # rejected before any request goes out
        state.fail(exc.message, exc.kind)
        return state

    state.start_search()
    try:
        results = await recommender.recommend(query, state.companion)
    except TourError as exc:
        state.fail(exc.message, exc.kind)
    except Exception as exc:
        logger.exception("recommendation failed: {}", exc)
        state.fail(GENERIC_ERROR)
    else:
        state.succeed(results)
    return state
