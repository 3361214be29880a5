"""Cry classification behind a pluggable provider interface."""
from __future__ import annotations

import base64
import json
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from openai import APIError, OpenAI
from pydantic import ValidationError

from .config import CONFIG
from .schemas import CryClassification, CryNeed

logger = logging.getLogger(__name__)


class CryClassificationError(Exception):
    """Classifier could not produce a result."""


NEED_DESCRIPTIONS = {
    CryNeed.HUNGER: "Baby is likely hungry. Consider feeding.",
    CryNeed.SLEEP: "Baby seems tired. Try putting them down for a nap.",
    CryNeed.DISCOMFORT: "Baby may be uncomfortable. Check diaper or clothing.",
    CryNeed.ATTENTION: "Baby wants attention and interaction.",
    CryNeed.PAIN: "Baby might be in pain. Monitor closely.",
}

NEED_RECOMMENDATIONS = {
    CryNeed.HUNGER: [
        "Offer breast or bottle feeding",
        "Check if it's been 2-3 hours since last feeding",
        "Look for hunger cues like rooting or sucking motions",
    ],
    CryNeed.SLEEP: [
        "Create a calm, dark environment",
        "Try swaddling or gentle rocking",
        "Check if baby has been awake for 1-2 hours",
    ],
    CryNeed.DISCOMFORT: [
        "Check and change diaper if needed",
        "Adjust room temperature",
        "Check for tight clothing or hair wrapped around fingers/toes",
    ],
    CryNeed.ATTENTION: [
        "Talk or sing to your baby",
        "Make eye contact and smile",
        "Try gentle play or tummy time",
    ],
    CryNeed.PAIN: [
        "Check for signs of illness or injury",
        "Consider gas or colic remedies",
        "Consult pediatrician if crying persists",
    ],
}

CANNED_CONFIDENCE = {
    CryNeed.HUNGER: 0.85,
    CryNeed.SLEEP: 0.78,
    CryNeed.DISCOMFORT: 0.72,
    CryNeed.ATTENTION: 0.65,
    CryNeed.PAIN: 0.45,
}


def build_classification(need: CryNeed, confidence: float, description: Optional[str] = None) -> CryClassification:
    return CryClassification(
        need=need,
        confidence=confidence,
        description=description or NEED_DESCRIPTIONS[need],
        recommendations=list(NEED_RECOMMENDATIONS[need]),
    )


class CryClassifier(ABC):
    """Turns a recorded clip into a need label with confidence."""

    name: str = "base"

    def classify(self, audio: bytes, baby_id: str, *, audio_format: str = "wav") -> CryClassification:
        if not audio:
            raise CryClassificationError("Audio clip is empty.")
        result = self._classify(audio, baby_id, audio_format)
        logger.info(
            "cry classified",
            extra={
                "baby_id": baby_id,
                "classifier": self.name,
                "need": result.need.value,
                "confidence": result.confidence,
            },
        )
        return result

    @abstractmethod
    def _classify(self, audio: bytes, baby_id: str, audio_format: str) -> CryClassification:
        ...


class CannedCryClassifier(CryClassifier):
    """Placeholder that picks one of the canned results."""

    name = "canned"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def _classify(self, audio: bytes, baby_id: str, audio_format: str) -> CryClassification:
        need = self._rng.choice(list(CryNeed))
        return build_classification(need, CANNED_CONFIDENCE[need])


CLASSIFIER_PROMPT = """
You are a pediatric sleep and soothing specialist listening to a short recording of an infant crying.
Classify the most likely need as exactly one of: hunger, sleep, discomfort, attention, pain.
Return ONLY JSON like {"need": "hunger", "confidence": 0.7, "description": "one short sentence for the parent"}.
Confidence is a number between 0 and 1. Do not wrap the JSON in markdown fences.
"""


class OpenAICryClassifier(CryClassifier):
    """Sends the clip to an audio-capable chat model."""

    name = "openai"

    def __init__(self, client: Any = None, model: Optional[str] = None) -> None:
        self._client = client or OpenAI(api_key=CONFIG.openai_api_key)
        self._model = model or CONFIG.openai_audio_model

    def _classify(self, audio: bytes, baby_id: str, audio_format: str) -> CryClassification:
        encoded = base64.b64encode(audio).decode("ascii")
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                modalities=["text"],
                temperature=0.0,
                messages=[
                    {"role": "system", "content": CLASSIFIER_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": "Classify this cry."},
                            {
                                "type": "input_audio",
                                "input_audio": {"data": encoded, "format": audio_format},
                            },
                        ],
                    },
                ],
            )
        except APIError as exc:
            logger.exception("OpenAI cry classification failed", exc_info=exc)
            raise CryClassificationError("Cry classification service is unavailable.") from exc

        try:
            content = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as exc:
            raise CryClassificationError("Unexpected classifier response format.") from exc
        return parse_classifier_payload(content)


def parse_classifier_payload(content: str) -> CryClassification:
    cleaned = content.strip().strip("`")
    if cleaned.startswith("json"):
        cleaned = cleaned[4:]
    try:
        payload: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise CryClassificationError("Classifier returned invalid JSON.") from exc
    if not isinstance(payload, dict):
        raise CryClassificationError(f"Classifier returned a non-object payload: {payload}")
    try:
        need = CryNeed(str(payload.get("need", "")).strip().lower())
        return build_classification(need, float(payload.get("confidence", 0.0)), payload.get("description"))
    except (ValueError, TypeError, ValidationError) as exc:
        raise CryClassificationError(f"Classifier returned an unusable result: {payload}") from exc


_CLASSIFIERS = {
    CannedCryClassifier.name: CannedCryClassifier,
    OpenAICryClassifier.name: OpenAICryClassifier,
}


def available_classifiers() -> List[str]:
    return sorted(_CLASSIFIERS)


def create_cry_classifier(name: Optional[str] = None) -> CryClassifier:
    resolved = (name or CONFIG.cry_classifier).strip().lower()
    factory = _CLASSIFIERS.get(resolved)
    if factory is None:
        raise ValueError(f"Unknown cry classifier '{resolved}'. Options: {', '.join(available_classifiers())}")
    return factory()
