"""Collaborator protocols the engine depends on.

Components take these through their constructors, so tests can hand in
small fakes instead of real network clients.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .models import Classification


class TextGenerator(Protocol):
    def generate(self, prompt: str, system: Optional[str] = None, temperature: Optional[float] = None) -> str:
        """Return generated text or raise ``GenerationError``."""
        ...


class TextClassifier(Protocol):
    def classify(self, inputs: List[str], examples: List[Dict[str, str]]) -> List[Classification]:
        """Return one classification per input or raise ``ClassificationError``."""
        ...
