from __future__ import annotations

import asyncio
import time
from typing import List

from loguru import logger

from errors import invalid_query, no_results
from models import (
    CompanionCategory,
    CoordinateQuery,
    KeywordQuery,
    Place,
    Recommendation,
    SearchQuery,
)
from services.reasoner import ReasonGenerator
from services.tourapi import TourApiClient


class TourRecommender:
    """Search -> top N -> (overview, reason) per place, in rank order."""

    def __init__(self, client: TourApiClient, reasoner: ReasonGenerator, top_n: int = 3) -> None:
        if top_n < 1:
            raise ValueError("top_n must be at least 1")
        self.client = client
        self.reasoner = reasoner
        self.top_n = top_n

    async def _search(self, query: SearchQuery) -> List[Place]:
        if isinstance(query, KeywordQuery):
            text = query.text.strip()
            if not text:
                raise invalid_query()
            return await self.client.search_keyword(text)
        if isinstance(query, CoordinateQuery):
            return await self.client.search_nearby(query.latitude, query.longitude)
        raise invalid_query()

    async def _enrich(self, idx: int, place: Place, companion: CompanionCategory) -> Recommendation:
        start_time = time.time()
        overview = await self.client.fetch_overview(place.id)
        place.overview = overview
        result = await self.reasoner.generate(place.title, overview, companion)
        logger.debug(
            "Place {} ({}) enriched in {:.2f}s source={}",
            idx,
            place.id,
            time.time() - start_time,
            result.source,
        )
        return Recommendation(
            place=place,
            reason=result.text,
            reason_source="fallback" if result.is_fallback else "generated",
        )

    async def recommend(
        self, query: SearchQuery, companion: CompanionCategory
    ) -> List[Recommendation]:
        companion = CompanionCategory(companion)
        places = await self._search(query)
        if not places:
            raise no_results()

        top = places[: self.top_n]
        # gather preserves argument order, so results stay in rank order
        recommendations = await asyncio.gather(
            *(self._enrich(idx, p, companion) for idx, p in enumerate(top))
        )
        logger.info(
            "recommendation kind={} companion={} candidates={} returned={} fallbacks={}",
            query.kind,
            companion.value,
            len(places),
            len(recommendations),
            sum(1 for r in recommendations if r.reason_source == "fallback"),
        )
        return list(recommendations)
