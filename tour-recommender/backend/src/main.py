from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional

import requests
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from config import Configuration
from errors import TourError, http_status_for
from models import CompanionCategory, Recommendation
from services.reasoner import ReasonGenerator
from services.recommender import TourRecommender
from services.tourapi import TourApiClient
from services.view_state import TourViewState, run_search
from utils import map_search_link

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    cfg = Configuration.from_env()
    logger.info("cfg: {}", cfg.log_summary())
    app.state.cfg = cfg
    app.state.reasoner = ReasonGenerator(cfg)
    async with TourApiClient(cfg) as client:
        app.state.tour_client = client
        yield


app = FastAPI(title="Tour Recommender", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RecommendRequest(BaseModel):
    query: Optional[str] = Field(None, description="Region or attraction name typed by the user")
    companion: CompanionCategory = Field(CompanionCategory.COUPLE, description="Who the user travels with")
    latitude: Optional[float] = Field(None, description="Device latitude, used when no query is typed")
    longitude: Optional[float] = Field(None, description="Device longitude, used when no query is typed")


class RecommendationPayload(BaseModel):
    id: str
    category_id: str
    title: str
    address: str
    image_url: Optional[str] = None
    longitude: str
    latitude: str
    overview: Optional[str] = None
    reason: str
    reason_source: str
    map_url: str


class ViewStatePayload(BaseModel):
    query_text: str
    companion: CompanionCategory
    is_loading: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None
    show_setup_help: bool = False
    results: List[RecommendationPayload] = []


def to_payload(rec: Recommendation) -> RecommendationPayload:
    p = rec.place
    return RecommendationPayload(
        id=p.id,
        category_id=p.category_id,
        title=p.title,
        address=p.address,
        image_url=p.image_url,
        longitude=p.longitude,
        latitude=p.latitude,
        overview=p.overview,
        reason=rec.reason,
        reason_source=rec.reason_source,
        map_url=map_search_link(p.title, p.address),
    )


def state_payload(state: TourViewState) -> ViewStatePayload:
    return ViewStatePayload(
        query_text=state.query_text,
        companion=state.companion,
        is_loading=state.is_loading,
        error=state.error,
        error_kind=state.error_kind.value if state.error_kind else None,
        show_setup_help=state.show_setup_help,
        results=[to_payload(r) for r in state.results],
    )


def get_recommender(request: Request) -> TourRecommender:
    state = request.app.state
    return TourRecommender(state.tour_client, state.reasoner, top_n=state.cfg.top_n)


@app.get("/healthz")
def healthz() -> dict:
    cfg = Configuration.from_env()
    logger.info("cfg: {}", cfg.log_summary())
    return {"status": "ok"}


@app.get("/health/tour")
def health_tour() -> dict:
    cfg = Configuration.from_env()
    detail = None
    try:
        url = TourApiClient(cfg).request_url("areaCode2", {"numOfRows": 1})
        r = requests.get(url, timeout=5)
        ok = r.ok and "application/json" in r.headers.get("content-type", "")
    except TourError as exc:
        ok = False
        detail = exc.message
    except requests.RequestException as exc:
        ok = False
        detail = str(exc)
    return {"ok": ok, "detail": detail}


@app.get("/health/llm")
def health_llm() -> dict:
    cfg = Configuration.from_env()
    return {
        "ok": bool(cfg.resolve_llm_credential()),
        "provider": "google",
        "model": cfg.llm_model_id,
    }


@app.get("/companions")
def companions() -> List[str]:
    return [c.value for c in CompanionCategory]


@app.post("/recommend", response_model=ViewStatePayload)
async def recommend(
    req: RecommendRequest,
    recommender: TourRecommender = Depends(get_recommender),
):
    state = TourViewState(query_text=req.query or "", companion=req.companion)
    coords = None
    if req.latitude is not None and req.longitude is not None:
        coords = (req.latitude, req.longitude)

    await run_search(state, recommender, coords)

    payload = state_payload(state)
    if state.error is not None:
        return JSONResponse(
            status_code=http_status_for(state.error_kind),
            content=payload.model_dump(mode="json"),
        )
    return payload


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8010, reload=True)
