#!/usr/bin/env python3
"""Console-script wrappers for Niche Pulse pipelines.

After an editable install (``pip install -e .``) the following commands become
available system-wide:

* ``niche-analyze``       - trends, opportunities and competitor headlines for a niche
* ``niche-predict``       - keyword interest forecast from a history file
* ``niche-predict-demo``  - the same forecast on generated demo history

Extra command-line arguments are passed through to the underlying script.
"""
from __future__ import annotations

import sys
from pathlib import Path
from subprocess import run

PYTHON = sys.executable
ROOT = Path(__file__).resolve().parents[1]  # Repository root


def _exec(cmd: list[str]) -> None:
    """Execute *cmd* and propagate its exit status."""
    run(cmd, check=True)


def _script(name: str) -> str:
    return str(ROOT / "scripts" / name)


# ---------------------------------------------------------------------------
# Entry-points
# ---------------------------------------------------------------------------

def analyze() -> None:
    """Run the niche analysis pipeline."""
    _exec([PYTHON, _script("analyze_niche.py"), *sys.argv[1:]])


def predict() -> None:
    """Run the prediction pipeline on user-supplied history."""
    _exec([PYTHON, _script("predict_trends.py"), *sys.argv[1:]])


def predict_demo() -> None:
    """Run the prediction pipeline on *demo* history."""
    _exec([PYTHON, _script("predict_trends.py"), "--demo", *sys.argv[1:]])
