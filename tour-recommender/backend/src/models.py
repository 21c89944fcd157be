"""Data models for the tour recommender."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Union


class CompanionCategory(str, Enum):
    FAMILY = "가족"
    COUPLE = "커플"
    SOLO = "나홀로"
    FRIENDS = "친구"


@dataclass
class Place:
    id: str
    category_id: str
    title: str
    address: str = ""
    image_url: Optional[str] = None
    # numeric strings exactly as TourAPI sends them (mapx / mapy)
    longitude: str = ""
    latitude: str = ""
    overview: Optional[str] = None


@dataclass
class Recommendation:
    place: Place
    reason: str
    reason_source: str = "generated"  # "generated" | "fallback"


@dataclass(frozen=True)
class KeywordQuery:
    text: str
    kind: Literal["keyword"] = field(default="keyword", init=False)


@dataclass(frozen=True)
class CoordinateQuery:
    latitude: float
    longitude: float
    kind: Literal["coordinates"] = field(default="coordinates", init=False)


SearchQuery = Union[KeywordQuery, CoordinateQuery]
