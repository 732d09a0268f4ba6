"""Runtime configuration, read from the environment (and a local ``.env``)."""
from __future__ import annotations

import logging
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .models import TimeWindow

logger = logging.getLogger(__name__)

SHORT_HORIZON = 3
EXTENDED_HORIZON = 6
MAX_ARTICLE_LIMIT = 8

# env var -> settings field
_ENV_FIELDS = {
    "NICHE_PULSE_HORIZON": "forecast_horizon",
    "NICHE_PULSE_HTTP_TIMEOUT": "http_timeout",
    "NICHE_PULSE_LLM_TIMEOUT": "llm_timeout",
    "NICHE_PULSE_MAX_WORKERS": "max_workers",
    "NICHE_PULSE_ARTICLE_LIMIT": "article_limit",
    "NICHE_PULSE_LANGUAGE": "language",
    "NICHE_PULSE_GEO": "geo",
    "NICHE_PULSE_PREFERRED_API": "preferred_api",
    "OPENAI_MODEL": "openai_model",
    "ANTHROPIC_MODEL": "anthropic_model",
}


class EngineSettings(BaseModel):
    """Tunables for one engine instance. Defaults suit an interactive request."""

    forecast_horizon: int = Field(SHORT_HORIZON, ge=1, le=EXTENDED_HORIZON)
    http_timeout: float = Field(15.0, gt=0)
    llm_timeout: float = Field(60.0, gt=0)
    max_workers: int = Field(6, ge=1, le=32)
    article_limit: int = Field(5, ge=1, le=MAX_ARTICLE_LIMIT)
    language: str = "en"
    geo: str = ""
    preferred_api: str = Field("openai", pattern="^(openai|claude)$")
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-5-haiku-latest"
    windows: List[TimeWindow] = Field(default_factory=TimeWindow.merge_order, min_length=1)

    model_config = {
        "frozen": True,
    }

    @classmethod
    def from_env(cls, **overrides) -> "EngineSettings":
        """Build settings from ``NICHE_PULSE_*`` variables.

        Values that fail validation are dropped with a warning so a single
        typo in ``.env`` cannot take the service down.
        """
        load_dotenv()

        values = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is None or not raw.strip():
                continue
            candidate = {field_name: raw.strip()}
            try:
                cls(**candidate)
            except ValidationError as exc:
                logger.warning(f"Ignoring {env_name}={raw!r}: {exc.errors()[0]['msg']}")
                continue
            values.update(candidate)

        raw_windows = os.getenv("NICHE_PULSE_WINDOWS")
        if raw_windows:
            try:
                values["windows"] = parse_windows(raw_windows)
            except ValueError as exc:
                logger.warning(f"Ignoring NICHE_PULSE_WINDOWS={raw_windows!r}: {exc}")

        values.update(overrides)
        return cls(**values)


def parse_windows(raw: str) -> List[TimeWindow]:
    """Parse a comma list like ``"today 1-m,now 7-d"`` into merge order."""
    wanted = {TimeWindow(part.strip()) for part in raw.split(",") if part.strip()}
    if not wanted:
        raise ValueError("no time windows given")
    return [w for w in TimeWindow.merge_order() if w in wanted]
