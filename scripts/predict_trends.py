#!/usr/bin/env python3
"""Keyword interest prediction.

Forecasts each keyword from its history, refines the forecast with a
reading of recent headlines and proposes when to act.

History files map each keyword to its points, oldest or newest first:

    {"hot yoga": [{"date": "2024-01-07", "value": 40}, ...]}

Example
-------
python scripts/predict_trends.py --niche yoga --keywords "hot yoga" --history history.json
python scripts/predict_trends.py --niche yoga --keywords "hot yoga,yoga mats" --demo --horizon 6
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fetchers.ai_client import AIClient
from trend_engine.models import PredictionRequest
from trend_engine.service import TrendsPredictionService
from trend_engine.settings import EXTENDED_HORIZON, SHORT_HORIZON, EngineSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
logger = logging.getLogger(__name__)


def split_list(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def load_history(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Read a ``{keyword: [{date, value}, ...]}`` JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object keyed by keyword")
    return data


def load_articles(path: Optional[Path]) -> List[str]:
    """One headline per line; blank lines ignored."""
    if path is None:
        return []
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forecast keyword interest and plan interventions")
    parser.add_argument("--niche", required=True, help="Niche or market the keywords belong to")
    parser.add_argument("--keywords", required=True, help="Comma separated keywords (1-7)")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--history", type=Path, help="JSON file with historical interest per keyword")
    source.add_argument("--demo", action="store_true", help="Use generated demo history and headlines")
    parser.add_argument("--articles", type=Path, help="Text file with recent headlines, one per line")
    parser.add_argument("--horizon", type=int, choices=[SHORT_HORIZON, EXTENDED_HORIZON],
                        help="Number of future points to forecast (default from settings)")
    parser.add_argument("--output", type=Path, help="Write the JSON result to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    overrides = {"forecast_horizon": args.horizon} if args.horizon else {}
    settings = EngineSettings.from_env(**overrides)
    service = TrendsPredictionService(AIClient.from_settings(settings), horizon=settings.forecast_horizon)
    keywords = split_list(args.keywords)

    try:
        if args.demo:
            result = service.predict_demo(args.niche, keywords)
        else:
            request = PredictionRequest(
                niche=args.niche,
                keywords=keywords,
                historical_data=load_history(args.history),
                recent_articles=load_articles(args.articles),
            )
            result = service.predict_trends(
                request.niche, request.keywords, request.historical_data, request.recent_articles
            )
    except (ValidationError, ValueError, OSError) as e:
        parser.error(str(e))

    text = json.dumps(result.model_dump(by_alias=True, mode="json"), indent=2, ensure_ascii=False)
    print(text)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"Saved prediction to {args.output}")
    if result.is_fallback:
        logger.warning("Prediction fell back to generic values; see errors above")
    return 0


if __name__ == "__main__":
    sys.exit(main())
