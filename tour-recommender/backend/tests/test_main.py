from __future__ import annotations

from types import SimpleNamespace
from typing import List

import pytest
from fastapi.testclient import TestClient

import main
from config import Configuration
from errors import no_results
from models import Place, Recommendation
from services.reasoner import ReasonGenerator
from services.recommender import TourRecommender
from services.tourapi import TourApiClient


class StubRecommender:
    def __init__(self, results: List[Recommendation] = None, error: Exception = None) -> None:
        self.results = results or []
        self.error = error
        self.queries = []

    async def recommend(self, query, companion):
        self.queries.append((query, companion))
        if self.error:
            raise self.error
        return list(self.results)


@pytest.fixture
def client():
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


def _use(recommender) -> None:
    main.app.dependency_overrides[main.get_recommender] = lambda: recommender


def test_recommend_returns_view_state(client: TestClient) -> None:
    place = Place(id="1", category_id="12", title="해운대해수욕장", address="부산 해운대구", longitude="129.1", latitude="35.1")
    stub = StubRecommender([Recommendation(place=place, reason="바다 산책이 즐거워요.")])
    _use(stub)

    r = client.post("/recommend", json={"query": "부산", "companion": "가족"})
    assert r.status_code == 200
    body = r.json()
    assert body["error"] is None
    assert body["is_loading"] is False
    assert body["companion"] == "가족"
    assert body["results"][0]["title"] == "해운대해수욕장"
    assert body["results"][0]["reason"] == "바다 산책이 즐거워요."
    assert body["results"][0]["map_url"].startswith("https://map.naver.com/")
    assert stub.queries[0][0].kind == "keyword"


def test_recommend_uses_coordinates_without_query(client: TestClient) -> None:
    stub = StubRecommender([])
    stub.error = no_results()
    _use(stub)

    r = client.post("/recommend", json={"latitude": 37.5, "longitude": 127.0})
    assert r.status_code == 404
    assert r.json()["error_kind"] == "no_results"
    assert stub.queries[0][0].kind == "coordinates"


def test_recommend_without_input_is_400(client: TestClient) -> None:
    stub = StubRecommender([])
    _use(stub)

    r = client.post("/recommend", json={"query": "  "})
    assert r.status_code == 400
    assert r.json()["error_kind"] == "invalid_query"
    assert stub.queries == []


def test_recommend_missing_credential_shows_setup_help(client: TestClient) -> None:
    cfg = Configuration()
    _use(TourRecommender(TourApiClient(cfg), ReasonGenerator(cfg)))

    r = client.post("/recommend", json={"query": "부산"})
    assert r.status_code == 503
    body = r.json()
    assert body["error_kind"] == "missing_credential"
    assert body["show_setup_help"] is True
    assert "KTO_API_KEY" in body["error"]
    assert body["results"] == []


def test_companions_lists_all_categories(client: TestClient) -> None:
    assert client.get("/companions").json() == ["가족", "커플", "나홀로", "친구"]


def test_health_llm_reports_missing_key(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    assert client.get("/health/llm").json()["ok"] is False
    monkeypatch.setenv("GEMINI_API_KEY", "gem")
    assert client.get("/health/llm").json()["ok"] is True


def test_health_tour_without_key(client: TestClient) -> None:
    body = client.get("/health/tour").json()
    assert body["ok"] is False
    assert "KTO_API_KEY" in body["detail"]


def test_favicon_is_not_served(client: TestClient) -> None:
    assert client.get("/favicon.ico").status_code == 404


def test_recommenders_share_startup_clients(client: TestClient) -> None:
    state = main.app.state
    assert isinstance(state.reasoner, ReasonGenerator)
    request = SimpleNamespace(app=main.app)
    first = main.get_recommender(request)
    second = main.get_recommender(request)
    assert first.reasoner is second.reasoner is state.reasoner
    assert first.client is second.client is state.tour_client
    assert first.top_n == state.cfg.top_n
