"""Niche Pulse trend engine.

Turns multi-source market signals for a niche into ranked content
opportunities and a short-horizon keyword interest forecast with
recommended intervention timing.

All modules log via ``logging.getLogger(__name__)``.  A
:class:`~logging.NullHandler` is attached to the package root logger so
nothing is emitted unless the calling application configures handlers.
"""

import logging

from .models import (
    Opportunity,
    PredictionDetail,
    PredictionResult,
    TrendsResult,
)
from .service import TrendsPredictionService, TrendsService

logger: logging.Logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = [
    "Opportunity",
    "PredictionDetail",
    "PredictionResult",
    "TrendsPredictionService",
    "TrendsResult",
    "TrendsService",
]

__version__ = "0.1.0"
