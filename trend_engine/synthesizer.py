"""Turn generated text into opportunity and prediction records.

Generated text is parsed in two tiers. Strict JSON parsing is tried
first; when that fails (or yields nothing) a heuristic pass splits the
prose on "Opportunity"/"Oportunidad" section headers and pulls titles,
suggested titles and justifications out with patterns. Anything that
still cannot be recovered gets a numbered placeholder, so callers always
receive a non-empty, well-shaped list.
"""
from __future__ import annotations

import json
import logging
import re
import textwrap
from typing import Any, Dict, List, Optional, Sequence

from .forecaster import round_half_up
from .interfaces import TextGenerator
from .models import AggregatedTrend, Opportunity, PredictionDetail, TextItem
from .parsing import load_json

logger = logging.getLogger(__name__)

MAX_SUGGESTED_TITLES = 3
MAX_TITLE_LENGTH = 120
DEFAULT_PRIORITY = 50

_TITLE_KEYS = ("title", "titulo", "título", "name", "nombre")
_JUSTIFICATION_KEYS = ("justification", "justificación", "justificacion", "description", "descripción", "descripcion")
_SUGGESTED_KEYS = ("suggestedTitles", "suggested_titles", "titles", "titulosSugeridos", "títulos", "titulos")
_APPROACH_KEYS = ("approach", "enfoque")
_GROWTH_KEYS = ("growth", "estimatedGrowth", "growthEstimate", "crecimiento")
_LIST_KEYS = ("opportunities", "oportunidades")

_SECTION_RE = re.compile(r"^[ \t#*>\-\d.)]*\b(?:opportunity|oportunidad)\b", re.IGNORECASE | re.MULTILINE)
_HEADER_PREFIX_RE = re.compile(
    r"^[\s#*>\-\d.)]*(?:opportunity|oportunidad)\s*#?\s*\d*\s*[:.\-–—)]*\s*", re.IGNORECASE
)
_TITLE_FIELD_RE = re.compile(r"^[\W\d]*(?:title|t[ií]tulo)\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_SUGGESTED_HEADER_RE = re.compile(
    r"(?:suggested|sugeridos|article)?\s*(?:titles|t[ií]tulos)(?:\s+sugeridos)?\s*(?:[:\-]\s*(.*))?$", re.IGNORECASE
)
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.+)$")
_QUOTED_RE = re.compile(r"[\"“]([^\"”\n]{8,})[\"”]")
_JUSTIFICATION_RE = re.compile(
    r"^[\W\d]*(?:justification|justificaci[oó]n|why|reason)\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE
)
_APPROACH_RE = re.compile(r"^[\W\d]*(?:approach|enfoque)\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_GROWTH_RE = re.compile(r"(?:growth|crecimiento)[^\d\-\n]*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
_DECORATION = "*_#\"'`“” "


def _first(item: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value not in (None, "", []):
            return value
    return None


def _clamp_score(value: float) -> int:
    return round_half_up(min(100.0, max(0.0, value)))


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace("%", "").strip())
    except ValueError:
        return None


def _shorten(text: str, width: int = MAX_TITLE_LENGTH) -> str:
    return textwrap.shorten(text, width=width, placeholder="...")


def placeholder_titles(n: int) -> List[str]:
    return [f"Suggested title for opportunity {n}"]


def build_opportunity(
    n: int,
    title: Optional[str],
    justification: Optional[str],
    suggested_titles: Optional[Sequence[Any]] = None,
    approach: Optional[str] = None,
    estimated_growth: Optional[float] = None,
) -> Opportunity:
    """Apply the defaulting rules and build a validated :class:`Opportunity`.

    Missing title -> ``"Opportunity {n}"``; missing justification -> the
    title; missing suggested titles -> a single numbered placeholder.
    Priority starts at the estimated growth clamped to 0-100, else 50.
    """
    title = _shorten(str(title).strip(_DECORATION)) if title and str(title).strip(_DECORATION) else f"Opportunity {n}"
    justification = str(justification).strip() if justification and str(justification).strip() else title

    if isinstance(suggested_titles, str):
        suggested_titles = [suggested_titles]
    cleaned = [str(s).strip(_DECORATION) for s in (suggested_titles or [])]
    cleaned = [s for s in cleaned if s][:MAX_SUGGESTED_TITLES] or placeholder_titles(n)

    approach = str(approach).strip() if approach and str(approach).strip() else None
    priority = _clamp_score(estimated_growth) if estimated_growth is not None else DEFAULT_PRIORITY
    return Opportunity(
        id=n,
        title=title,
        justification=justification,
        suggested_titles=cleaned,
        approach=approach,
        estimated_growth=estimated_growth,
        priority_score=priority,
    )


def fallback_opportunities(niche: str, keywords: Sequence[str] = ()) -> List[Opportunity]:
    """Generic opportunities used when nothing at all could be synthesised."""
    subjects = list(keywords[:3]) or [niche]
    return [
        build_opportunity(
            n,
            f"Evergreen content on {subject}",
            f"Steady baseline interest in {subject} within the {niche} niche.",
            [f"The complete guide to {subject}", f"{subject}: what to watch next"],
        )
        for n, subject in enumerate(subjects, 1)
    ]


# ---------------------------------------------------------------------------
# Opportunity parsing
# ---------------------------------------------------------------------------

def _opportunity_items(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        for key in _LIST_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            data = [data] if _first(data, _TITLE_KEYS + _JUSTIFICATION_KEYS) else []
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def parse_structured_opportunities(text: str) -> List[Opportunity]:
    """Strict tier: JSON only. Raises ``ValueError`` when the text is not JSON."""
    data = load_json(text)
    if not isinstance(data, (dict, list)):
        raise ValueError(f"opportunity payload is a {type(data).__name__}")
    items = _opportunity_items(data)
    return [
        build_opportunity(
            n,
            _first(item, _TITLE_KEYS),
            _first(item, _JUSTIFICATION_KEYS),
            _first(item, _SUGGESTED_KEYS),
            _first(item, _APPROACH_KEYS),
            _to_float(_first(item, _GROWTH_KEYS)),
        )
        for n, item in enumerate(items, 1)
    ]


def _split_sections(text: str) -> List[str]:
    starts = [m.start() for m in _SECTION_RE.finditer(text)]
    if not starts:
        return [text.strip()] if text.strip() else []
    bounds = starts + [len(text)]
    return [text[a:b].strip() for a, b in zip(bounds, bounds[1:]) if text[a:b].strip()]


def _suggested_from_lines(lines: List[str]) -> List[str]:
    titles: List[str] = []
    collecting = False
    for line in lines:
        header = _SUGGESTED_HEADER_RE.match(line.strip(_DECORATION + "-•"))
        if header:
            collecting = True
            inline = (header.group(1) or "").strip()
            if inline:
                titles.extend(part.strip() for part in re.split(r"[;|]", inline) if part.strip())
            continue
        if collecting:
            item = _LIST_ITEM_RE.match(line)
            if not item:
                break
            titles.append(item.group(1).strip())
    return titles


def _parse_section(section: str, n: int, marked: bool) -> Opportunity:
    lines = [line for line in section.splitlines() if line.strip()]

    title = None
    if marked:
        title = _HEADER_PREFIX_RE.sub("", lines[0]).strip(_DECORATION)
    if not title:
        field = _TITLE_FIELD_RE.search(section)
        title = field.group(1) if field else None

    suggested = _suggested_from_lines(lines[1:] if marked else lines)
    if not suggested:
        suggested = _QUOTED_RE.findall(section)

    justification = _JUSTIFICATION_RE.search(section)
    approach = _APPROACH_RE.search(section)
    growth = _GROWTH_RE.search(section)
    return build_opportunity(
        n,
        title,
        justification.group(1) if justification else section,
        suggested,
        approach.group(1) if approach else None,
        _to_float(growth.group(1)) if growth else None,
    )


def extract_opportunities_from_text(text: str) -> List[Opportunity]:
    """Heuristic tier: one opportunity per section, nothing discarded."""
    sections = _split_sections(text or "")
    marked = bool(_SECTION_RE.search(text or ""))
    return [_parse_section(section, n, marked) for n, section in enumerate(sections, 1)]


def parse_opportunities(text: str, niche: str, keywords: Sequence[str] = ()) -> List[Opportunity]:
    """Strict parse, then heuristic extraction, then placeholders."""
    structured = True
    try:
        opportunities = parse_structured_opportunities(text)
        if opportunities:
            return opportunities
        logger.warning("Structured reply held no opportunities")
    except ValueError as e:
        logger.warning(f"Opportunity JSON parse failed ({e}), trying text extraction")
        structured = False

    # an empty JSON reply has no prose to mine
    if not structured or _SECTION_RE.search(text or ""):
        opportunities = extract_opportunities_from_text(text)
        if opportunities:
            return opportunities

    logger.warning(f"No opportunities recoverable for '{niche}', using generic ones")
    return fallback_opportunities(niche, keywords)


# ---------------------------------------------------------------------------
# Prediction parsing
# ---------------------------------------------------------------------------

def default_explanation(keyword: str) -> str:
    return f'Forecast based on the historical trend for "{keyword}".'


def _regression_detail(keyword: str, current: int, forecast: Sequence[int], explanation: str) -> PredictionDetail:
    return PredictionDetail(
        keyword=keyword,
        current_value=_clamp_score(current),
        predicted_values=[_clamp_score(v) for v in forecast],
        explanation=explanation,
    )


def _structured_details(
    data: Any,
    keywords: Sequence[str],
    forecasts: Dict[str, List[int]],
    current_values: Dict[str, int],
) -> Dict[str, PredictionDetail]:
    if isinstance(data, dict):
        data = data.get("predictions", data.get("predicciones", []))
    if not isinstance(data, list):
        raise ValueError("prediction payload is not a list")

    lookup = {k.lower(): k for k in keywords}
    details: Dict[str, PredictionDetail] = {}
    for item in data:
        if not isinstance(item, dict):
            continue
        keyword = lookup.get(str(item.get("keyword", "")).strip().lower())
        if keyword is None or keyword in details:
            continue

        forecast = forecasts[keyword]
        current = _to_float(item.get("currentValue", item.get("current_value")))
        raw_values = item.get("predictedValues", item.get("predicted_values"))
        values = [_to_float(v) for v in raw_values] if isinstance(raw_values, list) else []
        if len(values) != len(forecast) or any(v is None for v in values):
            values = forecast
        explanation = str(item.get("explanation") or "").strip() or default_explanation(keyword)

        details[keyword] = _regression_detail(
            keyword,
            current if current is not None else current_values[keyword],
            values,
            explanation,
        )
    return details


def _explanation_from_text(text: str, keyword: str) -> Optional[str]:
    pattern = re.compile(rf"[^.\n]*\b{re.escape(keyword)}\b[^.\n]*[.\n]?", re.IGNORECASE)
    match = pattern.search(text or "")
    if not match:
        return None
    sentence = match.group(0).strip(_DECORATION + "-•\n")
    return _shorten(sentence, 300) if sentence else None


def parse_predictions(
    text: str,
    keywords: Sequence[str],
    forecasts: Dict[str, List[int]],
    current_values: Dict[str, int],
) -> List[PredictionDetail]:
    """Refined predictions in request keyword order.

    JSON entries for unknown keywords are ignored; keywords the reply
    skipped, and every keyword when the reply is not JSON, fall back to
    the regression forecast with an explanation lifted from the prose
    when one mentions the keyword.
    """
    structured = True
    try:
        details = _structured_details(load_json(text), keywords, forecasts, current_values)
    except ValueError as e:
        logger.warning(f"Prediction JSON parse failed ({e}), using regression output")
        details = {}
        structured = False

    results = []
    for keyword in keywords:
        if keyword in details:
            results.append(details[keyword])
            continue
        explanation = None if structured else _explanation_from_text(text, keyword)
        explanation = explanation or default_explanation(keyword)
        results.append(_regression_detail(keyword, current_values[keyword], forecasts[keyword], explanation))
    return results


class OpportunitySynthesizer:
    """Asks the text generator for opportunities and refined predictions."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def _generate(self, prompt: str, what: str) -> str:
        try:
            return self.generator.generate(prompt)
        except Exception as e:
            logger.error(f"{what} generation failed: {e}")
            return ""

    def discover(
        self,
        niche: str,
        keywords: Sequence[str],
        trends: Sequence[AggregatedTrend],
        articles: Sequence[TextItem],
    ) -> List[Opportunity]:
        trend_lines = "\n".join(
            f"- {t.keyword}: {t.growth_percent:+.1f}% growth"
            + (" (simulated data)" if t.simulated else "")
            for t in trends
        ) or "- no trend data"
        article_lines = "\n".join(
            f"- {a.title}" + (f": {a.summary}" if a.summary else "") for a in articles
        ) or "- no recent articles"

        prompt = f"""Analyse these recent trends for the "{niche}" niche.

Keywords analysed: {", ".join(keywords)}

Trend data:
{trend_lines}

Recent articles on the topic:
{article_lines}

Based ONLY on this data:
1. Identify 3-6 concrete content opportunities
2. Suggest 2-3 article titles for each opportunity
3. Give a short justification grounded in the trend data
4. Optionally describe an approach and estimate growth (0-100)

Respond ONLY with a JSON array:
[{{"id": 1, "title": "...", "justification": "...", "suggestedTitles": ["...", "..."], "approach": "...", "growth": 60}}]"""

        text = self._generate(prompt, "Opportunity")
        opportunities = parse_opportunities(text, niche, keywords)
        logger.info(f"Synthesised {len(opportunities)} opportunities for '{niche}'")
        return opportunities

    def narrate(
        self,
        niche: str,
        keywords: Sequence[str],
        forecasts: Dict[str, List[int]],
        current_values: Dict[str, int],
        insight: str,
    ) -> List[PredictionDetail]:
        quantitative = "\n".join(
            f'"{k}": current value {current_values[k]}, forecast {json.dumps(forecasts[k])}' for k in keywords
        )
        horizon = len(next(iter(forecasts.values()), []))
        prompt = f"""As a trend forecasting model, analyse this data for "{niche}":

QUANTITATIVE FORECASTS:
{quantitative}

QUALITATIVE ANALYSIS OF RECENT CONTENT:
{insight}

Produce refined predictions that combine the numbers with the context.
For each keyword give {horizon} adjusted values (0-100) and a short
explanation of why.

Respond ONLY with valid JSON in exactly this shape:
[{{"keyword": "...", "currentValue": 45, "predictedValues": [50, 55, 60], "explanation": "..."}}]"""

        text = self._generate(prompt, "Prediction")
        return parse_predictions(text, keywords, forecasts, current_values)
