from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

from utils import mask_secret


class Configuration(BaseModel):
    # KTO TourAPI
    kto_api_key: Optional[str] = Field(default=None)
    kto_base_url: str = Field(default="https://apis.data.go.kr/B551011/KorService2")
    kto_timeout: Optional[float] = Field(default=None)  # None disables the timeout
    kto_mobile_os: str = Field(default="ETC")
    kto_mobile_app: str = Field(default="TourAI")
    kto_page_size: int = Field(default=10, ge=1)
    kto_radius_m: int = Field(default=5000, ge=1)

    # Shared key; may hold either the TourAPI key or the Gemini key
    api_key: Optional[str] = Field(default=None)

    # LLM
    gemini_api_key: Optional[str] = Field(default=None)
    llm_model_id: str = Field(default="gemini-3-flash-preview")
    llm_overview_chars: int = Field(default=2000)

    # Recommendation
    top_n: int = Field(default=3, ge=1)

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "kto_api_key": os.getenv("KTO_API_KEY"),
            "kto_base_url": os.getenv("KTO_BASE_URL"),
            "kto_timeout": os.getenv("KTO_TIMEOUT"),
            "kto_mobile_os": os.getenv("KTO_MOBILE_OS"),
            "kto_mobile_app": os.getenv("KTO_MOBILE_APP"),
            "kto_page_size": os.getenv("KTO_PAGE_SIZE"),
            "kto_radius_m": os.getenv("KTO_RADIUS_M"),
            "api_key": os.getenv("API_KEY"),
            "gemini_api_key": os.getenv("GEMINI_API_KEY"),
            "llm_model_id": os.getenv("LLM_MODEL_ID"),
            "llm_overview_chars": os.getenv("LLM_OVERVIEW_CHARS"),
            "top_n": os.getenv("TOP_N"),
        }

        for k, v in env_map.items():
            if v is None or (k == "kto_timeout" and not v.strip()):
                continue
            raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    def resolve_tour_credential(self) -> Optional[str]:
        """Return the TourAPI service key, preferring KTO_API_KEY over API_KEY.

        Values are trimmed; blank values count as unset.
        """
        for value in (self.kto_api_key, self.api_key):
            key = (value or "").strip()
            if key:
                return key
        return None

    def resolve_llm_credential(self) -> Optional[str]:
        for value in (self.gemini_api_key, self.api_key):
            key = (value or "").strip()
            if key:
                return key
        return None

    def log_summary(self) -> str:
        return (
            "kto_base=%s timeout=%s page_size=%s radius_m=%s tour_key=%s llm_model=%s llm_key=%s top_n=%s"
            % (
                self.kto_base_url,
                self.kto_timeout,
                self.kto_page_size,
                self.kto_radius_m,
                mask_secret(self.resolve_tour_credential()),
                self.llm_model_id,
                mask_secret(self.resolve_llm_credential()),
                self.top_n,
            )
        )
