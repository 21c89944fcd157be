from __future__ import annotations

import urllib.parse
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from config import Configuration
from errors import (
    TourError,
    auth_failed,
    credential_not_registered,
    missing_credential,
    network_error,
    unexpected_response_format,
    upstream_api_error,
    upstream_http_error,
)
from models import Place

RESULT_OK = "0000"
NOT_REGISTERED_SENTINEL = "SERVICE_KEY_IS_NOT_REGISTERED_ERROR"

OVERVIEW_EMPTY = "상세 정보가 없습니다."
OVERVIEW_UNAVAILABLE = "장소 상세 정보를 불러오는 중 오류가 발생했습니다."


def encode_service_key(key: str) -> str:
    """Percent-encode a service key unless it already looks encoded.

    data.go.kr hands out both an "encoding" and a "decoding" key. A key
    containing ``%`` is assumed to be the pre-encoded one and is passed
    through untouched. This is a heuristic: a raw key that happens to contain
    a literal ``%`` would be sent unencoded.
    """
    if "%" in key:
        return key
    return urllib.parse.quote(key, safe="")


def build_url(base: str, endpoint: str, service_key: str, params: Dict[str, Any]) -> str:
    query = "&".join(
        f"{urllib.parse.quote(str(k), safe='')}={urllib.parse.quote(str(v), safe='')}"
        for k, v in params.items()
    )
    url = f"{base.rstrip('/')}/{endpoint}?serviceKey={encode_service_key(service_key)}"
    return f"{url}&{query}" if query else url


def normalize_items(items: Any) -> List[Dict[str, Any]]:
    """Decode ``response.body.items`` into a plain list of raw records.

    TourAPI sends ``""`` when nothing matched, ``{"item": {...}}`` for a
    single hit and ``{"item": [...]}`` otherwise.
    """
    if items is None or items == "":
        return []
    if isinstance(items, dict):
        inner = items.get("item")
    else:
        inner = items
    if inner is None or inner == "":
        return []
    if isinstance(inner, dict):
        return [inner]
    if isinstance(inner, list):
        return [it for it in inner if isinstance(it, dict)]
    return []


def place_from_item(item: Dict[str, Any]) -> Place:
    return Place(
        id=str(item.get("contentid") or ""),
        category_id=str(item.get("contenttypeid") or ""),
        title=str(item.get("title") or ""),
        address=str(item.get("addr1") or ""),
        image_url=(str(item["firstimage"]) if item.get("firstimage") else None),
        longitude=str(item.get("mapx") or ""),
        latitude=str(item.get("mapy") or ""),
        overview=item.get("overview") or None,
    )


class TourApiClient:
    """Async client for the KTO TourAPI (KorService2)."""

    def __init__(self, cfg: Configuration, http: Optional[httpx.AsyncClient] = None) -> None:
        self.cfg = cfg
        self.base = cfg.kto_base_url.rstrip("/")
        self._client = http
        self._owns_client = http is None

    async def __aenter__(self) -> "TourApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.cfg.kto_timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _fixed_params(self) -> Dict[str, str]:
        return {
            "MobileOS": self.cfg.kto_mobile_os,
            "MobileApp": self.cfg.kto_mobile_app,
            "_type": "json",
        }

    def request_url(self, endpoint: str, params: Dict[str, Any]) -> str:
        service_key = self.cfg.resolve_tour_credential()
        if not service_key:
            raise missing_credential()
        return build_url(self.base, endpoint, service_key, {**self._fixed_params(), **params})

    @staticmethod
    def _decode(resp: httpx.Response) -> Dict[str, Any]:
        if not resp.is_success:
            if resp.status_code == 401:
                raise auth_failed()
            raise upstream_http_error(resp.status_code)

        content_type = resp.headers.get("content-type", "")
        if "application/json" not in content_type:
            if NOT_REGISTERED_SENTINEL in resp.text:
                raise credential_not_registered()
            raise unexpected_response_format()

        try:
            payload = resp.json()
        except ValueError:
            raise unexpected_response_format()
        if not isinstance(payload, dict) or not isinstance(payload.get("response"), dict):
            raise unexpected_response_format()

        response = payload["response"]
        header = response.get("header") or {}
        code = header.get("resultCode")
        if code != RESULT_OK:
            raise upstream_api_error(code, header.get("resultMsg"))
        return response.get("body") or {}

    async def _fetch_items(self, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            url = self.request_url(endpoint, params)
            client = await self._get_client()
            try:
                resp = await client.get(url)
            except httpx.RequestError as exc:
                raise network_error(type(exc).__name__) from exc
            body = self._decode(resp)
        except TourError as exc:
            logger.warning("tourapi {} failed: {} {}", endpoint, exc.kind.value, exc.message)
            raise
        return normalize_items(body.get("items"))

    async def search_keyword(self, keyword: str, *, limit: Optional[int] = None) -> List[Place]:
        items = await self._fetch_items(
            "searchKeyword2",
            {
                "keyword": keyword,
                "listYN": "Y",
                "arrange": "O",
                "numOfRows": limit if limit is not None else self.cfg.kto_page_size,
            },
        )
        places = [place_from_item(it) for it in items]
        logger.debug("tourapi keyword={!r} hits={}", keyword, len(places))
        return places

    async def search_nearby(
        self,
        latitude: float,
        longitude: float,
        *,
        radius_m: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Place]:
        items = await self._fetch_items(
            "locationBasedList2",
            {
                "mapX": str(longitude),
                "mapY": str(latitude),
                "radius": radius_m if radius_m is not None else self.cfg.kto_radius_m,
                "listYN": "Y",
                "arrange": "O",
                "numOfRows": limit if limit is not None else self.cfg.kto_page_size,
            },
        )
        places = [place_from_item(it) for it in items]
        logger.debug("tourapi nearby lat={} lon={} hits={}", latitude, longitude, len(places))
        return places

    async def fetch_overview(self, content_id: str) -> str:
        """Return the overview text for a place; never raises."""
        try:
            items = await self._fetch_items(
                "detailCommon2",
                {
                    "contentId": content_id,
                    "overviewYN": "Y",
                    "defaultYN": "Y",
                    "addrinfoYN": "Y",
                },
            )
            overview = str((items[0].get("overview") if items else None) or "").strip()
        except Exception as exc:
            logger.warning("overview fetch failed for {}: {!r}", content_id, exc)
            return OVERVIEW_UNAVAILABLE
        return overview or OVERVIEW_EMPTY
