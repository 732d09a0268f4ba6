# pylint: disable=missing-module-docstring
# ruff: noqa

from pathlib import Path

from setuptools import find_packages, setup


def read_long_description() -> str:
    """Return README contents for PyPI description."""
    readme_path = Path(__file__).with_name("README.md")
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else "Niche Pulse"


setup(
    name="niche-pulse",
    version="0.1.0",
    description="Niche trend analysis, content opportunities and keyword interest forecasting",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    python_requires=">=3.11",
    packages=find_packages(include=["trend_engine", "trend_engine.*", "fetchers", "fetchers.*", "niche_pulse", "niche_pulse.*"]),
    include_package_data=True,
    install_requires=[
        "pandas>=2.0",
        "numpy>=1.24",
        "httpx>=0.26",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "openai>=1.0",
        "anthropic>=0.18",
        "beautifulsoup4>=4.12",
        "feedparser>=6.0",
        "pytrends>=4.9",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "niche-analyze = niche_pulse.cli_entrypoints:analyze",
            "niche-predict = niche_pulse.cli_entrypoints:predict",
            "niche-predict-demo = niche_pulse.cli_entrypoints:predict_demo",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
