"""
Cognitive-status classifiers.

Two implementations share the same surface (``analyze`` and ``score_text``):

* ``HeuristicClassifier`` - deterministic, derived from the raw percentage.
* ``ModelClassifier``     - a small dense softmax model stored as a NumPy
  ``.npz`` archive (``weights`` 28x4, ``bias`` 4). Loading is best effort and
  bounded by a timeout; any failure falls back to the heuristic.
"""

from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import numpy as np

from .questions import RECALL_WORDS
from .scoring import classify_percentage

logger = logging.getLogger(__name__)

MODEL_CLASSES = ("Normal", "Mild", "Moderate", "Severe")
FEATURE_WIDTH = 28
FALLBACK_CONFIDENCE = 0.85

_ORIENTATION_RE = re.compile(r"\b(today|now|current|present)\b", re.IGNORECASE)


@dataclass
class AnswerFeatures:
    category_responses: Dict[str, List[float]]
    patient_age: int
    patient_gender: str
    response_times_ms: Dict[int, int] = field(default_factory=dict)
    raw_percentage: float = 0.0


@dataclass
class AnalysisResult:
    severity: str
    confidence: float
    category_scores: Dict[str, float]
    source: str = "heuristic"


class Classifier(Protocol):
    def analyze(self, features: AnswerFeatures) -> AnalysisResult: ...

    def score_text(self, text: str, category: str) -> float: ...


def _category_means(features: AnswerFeatures) -> Dict[str, float]:
    return {
        category: (sum(values) / len(values) if values else 0.0)
        for category, values in features.category_responses.items()
    }


class HeuristicClassifier:
    """Rule-of-thumb classifier used when no trained model is available."""

    source = "heuristic"

    def analyze(self, features: AnswerFeatures) -> AnalysisResult:
        pct = max(0.0, min(100.0, features.raw_percentage))
        return AnalysisResult(
            severity=classify_percentage(pct),
            confidence=FALLBACK_CONFIDENCE,
            category_scores=_category_means(features),
            source=self.source,
        )

    def score_text(self, text: str, category: str) -> float:
        """Confidence in ``[0, 1]`` that a free-text answer is correct."""
        text = text.strip()
        if not text:
            return 0.0

        if category in ("Orientation to Time", "Orientation to Place"):
            if _ORIENTATION_RE.search(text):
                return 1.0
            if len(text) < 5:
                return 0.0
            return 0.5

        if category in ("Registration", "Recall"):
            lowered = text.lower()
            hits = sum(1 for w in RECALL_WORDS if w in lowered)
            return hits / len(RECALL_WORDS)

        if category == "Language":
            return 1.0 if len(text.split()) >= 5 else 0.5

        return min(len(text) / 20.0, 1.0)


def _load_npz(path: Path):
    with np.load(path) as archive:
        weights = np.asarray(archive["weights"], dtype=float)
        bias = np.asarray(archive["bias"], dtype=float)
    if weights.shape != (FEATURE_WIDTH, len(MODEL_CLASSES)):
        raise ValueError(f"weights must be {FEATURE_WIDTH}x{len(MODEL_CLASSES)}, got {weights.shape}")
    if bias.shape != (len(MODEL_CLASSES),):
        raise ValueError(f"bias must have {len(MODEL_CLASSES)} entries, got {bias.shape}")
    return weights, bias


class ModelClassifier:
    def __init__(self, model_path: Optional[str], timeout: float = 5.0,
                 fallback: Optional[HeuristicClassifier] = None) -> None:
        self.model_path = Path(model_path) if model_path else None
        self.timeout = timeout
        self.fallback = fallback or HeuristicClassifier()
        self.initialized = False
        self.fallback_mode = False
        self._weights = None
        self._bias = None
        self._lock = threading.Lock()

    def initialize(self) -> bool:
        """Try to load the model once. Returns True when the model is usable."""
        with self._lock:
            if not self.initialized:
                self.fallback_mode = not self._load()
                self.initialized = True
            return not self.fallback_mode

    def _load(self) -> bool:
        if self.model_path is None:
            logger.info("no classifier model configured, using heuristic fallback")
            return False

        pool = ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(_load_npz, self.model_path)
            self._weights, self._bias = future.result(timeout=self.timeout)
        except FutureTimeout:
            logger.warning("classifier model load timed out after %.1fs, using heuristic", self.timeout)
            return False
        except Exception:
            logger.warning("failed to load classifier model from %s, using heuristic",
                           self.model_path, exc_info=True)
            return False
        finally:
            pool.shutdown(wait=False)

        logger.info("classifier model loaded from %s", self.model_path)
        return True

    def feature_vector(self, features: AnswerFeatures) -> np.ndarray:
        values: List[float] = []
        for responses in features.category_responses.values():
            values.extend(responses)
        values.append(features.patient_age / 100.0)
        values.append(1.0 if features.patient_gender == "Male" else 0.0)
        values.append(1.0 if features.patient_gender == "Female" else 0.0)
        times = list(features.response_times_ms.values())
        avg_ms = sum(times) / len(times) if times else 0.0
        values.append(min(avg_ms / 10000.0, 1.0))

        vec = np.zeros(FEATURE_WIDTH, dtype=float)
        vec[:min(len(values), FEATURE_WIDTH)] = values[:FEATURE_WIDTH]
        return vec

    def analyze(self, features: AnswerFeatures) -> AnalysisResult:
        if not self.initialize():
            return self.fallback.analyze(features)
        try:
            logits = self.feature_vector(features) @ self._weights + self._bias
            exp = np.exp(logits - logits.max())
            probs = exp / exp.sum()
            idx = int(np.argmax(probs))
        except Exception:
            logger.warning("classifier prediction failed, using heuristic", exc_info=True)
            return self.fallback.analyze(features)

        return AnalysisResult(
            severity=MODEL_CLASSES[idx],
            confidence=float(probs[idx]),
            category_scores=_category_means(features),
            source="model",
        )

    def score_text(self, text: str, category: str) -> float:
        return self.fallback.score_text(text, category)


def make_classifier(model_path: Optional[str] = None, timeout: float = 5.0) -> Classifier:
    if model_path:
        return ModelClassifier(model_path, timeout=timeout)
    return HeuristicClassifier()
