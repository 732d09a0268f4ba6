"""Text generation and few-shot classification using OpenAI and Claude APIs."""

import logging
import os
from typing import Dict, List, Optional

import anthropic
import openai

from trend_engine.errors import ClassificationError, GenerationError
from trend_engine.models import Classification
from trend_engine.parsing import load_json
from trend_engine.settings import EngineSettings


def get_logger():
    """Get configured logger."""
    return logging.getLogger(__name__)


class AIClient:
    """Prompt-in, text-out client with provider fallback.

    Both capabilities the engine needs live here: free-text generation and
    a three-way (or n-way) classifier driven by labelled examples. Calls
    are synchronous; callers invoke them one after another so a single
    request never hammers the provider.
    """

    def __init__(
        self,
        preferred_api: str = "openai",
        openai_model: str = "gpt-4o-mini",
        anthropic_model: str = "claude-3-5-haiku-latest",
        timeout: float = 60.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ):
        """Initialize the client.

        Args:
            preferred_api: "openai" or "claude" (falls back to other if primary fails)
            timeout: Per-request timeout in seconds; a timeout fails that call only
        """
        self.preferred_api = preferred_api
        self.openai_model = openai_model
        self.anthropic_model = anthropic_model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.logger = get_logger()

        self._init_openai()
        self._init_claude()

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "AIClient":
        return cls(
            preferred_api=settings.preferred_api,
            openai_model=settings.openai_model,
            anthropic_model=settings.anthropic_model,
            timeout=settings.llm_timeout,
        )

    def _init_openai(self):
        """Initialize OpenAI client."""
        try:
            self.openai_client = openai.OpenAI(api_key=os.getenv("OPENAI_API_KEY"), timeout=self.timeout)
            self.openai_available = True
            self.logger.info("OpenAI client initialized")
        except Exception as e:
            self.logger.warning(f"OpenAI initialization failed: {e}")
            self.openai_available = False

    def _init_claude(self):
        """Initialize Claude client."""
        try:
            self.claude_client = anthropic.Anthropic(api_key=os.getenv("ANTHROPIC_API_KEY"), timeout=self.timeout)
            self.claude_available = bool(os.getenv("ANTHROPIC_API_KEY"))
            self.logger.info("Claude client initialized")
        except Exception as e:
            self.logger.warning(f"Claude initialization failed: {e}")
            self.claude_available = False

    def _call_openai(self, prompt: str, system: Optional[str], temperature: float) -> Optional[str]:
        """Call OpenAI API."""
        if not self.openai_available:
            return None

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        try:
            response = self.openai_client.chat.completions.create(
                model=self.openai_model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=temperature,
            )
            return response.choices[0].message.content

        except Exception as e:
            self.logger.error(f"OpenAI API call failed: {e}")
            return None

    def _call_claude(self, prompt: str, system: Optional[str], temperature: float) -> Optional[str]:
        """Call Claude API."""
        if not self.claude_available:
            return None

        kwargs = {}
        if system:
            kwargs["system"] = system
        try:
            response = self.claude_client.messages.create(
                model=self.anthropic_model,
                max_tokens=self.max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
            return response.content[0].text

        except Exception as e:
            self.logger.error(f"Claude API call failed: {e}")
            return None

    def _apis_to_try(self) -> List[str]:
        apis = [self.preferred_api]
        apis.append("claude" if self.preferred_api == "openai" else "openai")
        return apis

    def generate(self, prompt: str, system: Optional[str] = None, temperature: Optional[float] = None) -> str:
        """Return generated text for *prompt*.

        Raises:
            GenerationError: If every provider failed or returned nothing.
        """
        temperature = self.temperature if temperature is None else temperature
        for api in self._apis_to_try():
            if api == "openai":
                text = self._call_openai(prompt, system, temperature)
            else:
                text = self._call_claude(prompt, system, temperature)

            if text and text.strip():
                self.logger.debug(f"Got {len(text)} chars from {api}")
                return text.strip()

        raise GenerationError("all text generation providers failed")

    def _classification_prompt(self, inputs: List[str], examples: List[Dict[str, str]], labels: List[str]) -> str:
        examples_text = "\n".join(f'- "{ex["text"]}" => {ex["label"]}' for ex in examples)
        inputs_text = "\n".join(f"{i}. {text}" for i, text in enumerate(inputs, 1))
        return f"""Classify each input into exactly one of these labels: {", ".join(labels)}.

LABELLED EXAMPLES:
{examples_text}

INPUTS:
{inputs_text}

Return ONLY a JSON array with one object per input, in input order:
[{{"prediction": "<label>", "confidence": <number between 0 and 1>}}]"""

    def classify(self, inputs: List[str], examples: List[Dict[str, str]]) -> List[Classification]:
        """Label each input using the labelled *examples* as guidance.

        Raises:
            ClassificationError: If generation fails or the reply cannot be
                matched one-to-one with *inputs*.
        """
        if not inputs:
            return []
        labels = list(dict.fromkeys(ex["label"].strip().lower() for ex in examples))
        if not labels:
            raise ClassificationError("no labelled examples given")

        prompt = self._classification_prompt(inputs, examples, labels)
        try:
            reply = self.generate(prompt, system="You are a precise text classifier. Respond only with valid JSON.", temperature=0.0)
            data = load_json(reply)
        except (GenerationError, ValueError) as e:
            raise ClassificationError(str(e)) from e

        if not isinstance(data, list) or len(data) != len(inputs):
            raise ClassificationError(f"expected {len(inputs)} classifications, got {data!r:.200}")

        results = []
        for item in data:
            try:
                label = str(item["prediction"]).strip().lower()
                confidence = min(1.0, max(0.0, float(item["confidence"])))
            except (KeyError, TypeError, ValueError) as e:
                raise ClassificationError(f"malformed classification {item!r}") from e
            if label not in labels:
                raise ClassificationError(f"unknown label {label!r}")
            results.append(Classification(prediction=label, confidence=confidence))
        return results
