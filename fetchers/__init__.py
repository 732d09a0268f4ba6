"""Network-facing signal sources and the AI client used by the trend engine."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
