#!/usr/bin/env python3
"""Niche trend analysis.

Collects search-interest series and recent news for a niche, turns them
into ranked content opportunities and optionally scrapes competitor
headlines.

Example
-------
python scripts/analyze_niche.py --niche yoga --keywords "hot yoga,yoga mats"
python scripts/analyze_niche.py --niche yoga --keywords "hot yoga" \
    --competitors https://example.com --output yoga.json --csv yoga_trends.csv
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd
from pydantic import ValidationError

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from trend_engine.models import NicheAnalysisRequest, TrendsResult
from trend_engine.service import build_default_services
from trend_engine.settings import EngineSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
logger = logging.getLogger(__name__)


def split_list(raw: Optional[str]) -> List[str]:
    """Split a comma separated option into its non-blank parts."""
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def trends_frame(result: TrendsResult) -> pd.DataFrame:
    """Trending keyword table, highest growth first."""
    rows = [{"keyword": t.keyword, "growth_percent": t.growth} for t in result.trending_keywords]
    return pd.DataFrame(rows, columns=["keyword", "growth_percent"])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Analyse trends and content opportunities for a niche")
    parser.add_argument("--niche", required=True, help="Niche or market to analyse")
    parser.add_argument("--keywords", required=True, help="Comma separated keywords (1-7)")
    parser.add_argument("--competitors", default="", help="Comma separated competitor URLs (first 3 are scraped)")
    parser.add_argument("--output", type=Path, help="Write the JSON result to this file")
    parser.add_argument("--csv", type=Path, help="Write the trending keyword table to this CSV file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    try:
        request = NicheAnalysisRequest(
            niche=args.niche,
            keywords=split_list(args.keywords),
            competitor_urls=split_list(args.competitors),
        )
    except ValidationError as e:
        parser.error(f"invalid request: {e.errors()[0]['msg']}")

    settings = EngineSettings.from_env()
    trends_service, _ = build_default_services(settings)
    try:
        analysis = trends_service.analyze_niche(request)
    finally:
        trends_service.close()

    payload = analysis.model_dump(by_alias=True, mode="json")
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    print(text)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"Saved analysis to {args.output}")
    if args.csv:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        trends_frame(analysis.trends).to_csv(args.csv, index=False)
        logger.info(f"Saved trending keywords to {args.csv}")

    if analysis.trends.is_fallback:
        logger.warning("Analysis fell back to generic opportunities; see errors above")
    return 0


if __name__ == "__main__":
    sys.exit(main())
