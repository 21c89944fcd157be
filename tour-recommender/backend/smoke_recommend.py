#!/usr/bin/env python
"""Manual end-to-end run against the live TourAPI and Gemini.

Usage: python smoke_recommend.py "부산" 가족
"""
import asyncio
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env
env_path = os.path.join(os.path.dirname(__file__), ".env")
load_dotenv(env_path)
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from config import Configuration
from models import CompanionCategory
from services.reasoner import ReasonGenerator
from services.recommender import TourRecommender
from services.tourapi import TourApiClient
from services.view_state import TourViewState, run_search


async def main(query: str, companion: CompanionCategory) -> None:
    cfg = Configuration.from_env()
    print(f"Configuration: {cfg.log_summary()}")
    print(f"--- Query: {query} / {companion.value} ---")

    state = TourViewState(query_text=query, companion=companion)
    async with TourApiClient(cfg) as client:
        await run_search(state, TourRecommender(client, ReasonGenerator(cfg), top_n=cfg.top_n))

    if state.error:
        print(f"ERROR ({state.error_kind}): {state.error}")
        return
    for i, rec in enumerate(state.results, 1):
        print(f"{i}. {rec.place.title} [{rec.place.address}] ({rec.reason_source})")
        print(f"   {rec.reason}")


if __name__ == "__main__":
    text = sys.argv[1] if len(sys.argv) > 1 else "부산"
    who = CompanionCategory(sys.argv[2]) if len(sys.argv) > 2 else CompanionCategory.COUPLE
    asyncio.run(main(text, who))
