from __future__ import annotations

"""Examination session state machine.

    NotStarted -> InProgress -> Analyzing -> Completed
         ^______________ reset() from any state ______|

One session per browser tab. Every mutation runs on a user event, so there
is no locking; ``complete()`` holds the session in ``Analyzing`` while the
classifier runs and nothing may record answers in that window.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Union

from .classifier import AnalysisResult, AnswerFeatures, Classifier, HeuristicClassifier
from .errors import InvalidInputError, InvalidStateError
from .questions import (
    QUESTIONS,
    ClassifierScoring,
    PredicateScoring,
    Question,
    max_possible_score,
    question_by_id,
)
from .scoring import ScoreAnalysis, analyze, percentage

logger = logging.getLogger(__name__)

GENDERS = ("Male", "Female", "Other")


class Status(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    ANALYZING = "analyzing"
    COMPLETED = "completed"


class Pending:
    """Marker for a free-text answer whose score is not evaluated yet."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"


PENDING = Pending()


@dataclass(frozen=True)
class PatientInfo:
    name: str = ""
    age: str = ""
    gender: str = ""

    def validate(self) -> None:
        if not self.name.strip() or not str(self.age).strip() or not self.gender:
            raise InvalidInputError("Please fill in all fields")
        if self.gender not in GENDERS:
            raise InvalidInputError(f"gender must be one of {', '.join(GENDERS)}")

    @property
    def age_years(self) -> int:
        digits = "".join(ch for ch in str(self.age) if ch.isdigit())
        return int(digits) if digits else 0


@dataclass(frozen=True)
class AnswerRecord:
    score: int
    raw_answer: str
    response_time_ms: int = 0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ExaminationSession:
    def __init__(self, questions: Sequence[Question] = QUESTIONS,
                 classifier: Optional[Classifier] = None) -> None:
        self.questions = tuple(questions)
        self.classifier = classifier or HeuristicClassifier()
        self.status = Status.NOT_STARTED
        self.current_index = 0
        self.answers: Dict[int, AnswerRecord] = {}
        self.patient_info = PatientInfo()
        self.total_score = 0
        self.analysis_result: Optional[AnalysisResult] = None

    # ── views ─────────────────────────────────────────────────────────────
    @property
    def max_possible_score(self) -> int:
        return max_possible_score(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def is_current_answered(self) -> bool:
        q = self.current_question
        return q is not None and q.id in self.answers

    @property
    def is_last_question(self) -> bool:
        return self.current_index >= len(self.questions) - 1

    def scores(self) -> Dict[int, int]:
        return {qid: rec.score for qid, rec in self.answers.items()}

    def response_times(self) -> Dict[int, int]:
        return {qid: rec.response_time_ms for qid, rec in self.answers.items()}

    def score_analysis(self) -> ScoreAnalysis:
        return analyze(self.scores(), self.max_possible_score, self.questions)

    # ── transitions ───────────────────────────────────────────────────────
    def _require(self, *allowed: Status) -> None:
        if self.status not in allowed:
            names = " or ".join(s.value for s in allowed)
            raise InvalidStateError(f"expected session {names}, but it is {self.status.value}")

    def start(self, patient_info: PatientInfo) -> None:
        patient_info.validate()
        self._require(Status.NOT_STARTED)
        self.patient_info = patient_info
        self.current_index = 0
        self.status = Status.IN_PROGRESS
        logger.info("examination started (%d questions)", len(self.questions))

    def advance(self) -> None:
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1

    def retreat(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1

    def resolve_score(self, question: Question, score: Union[int, Pending], raw_answer: str) -> int:
        if not isinstance(score, Pending):
            return score
        rule = question.scoring
        if isinstance(rule, PredicateScoring):
            return question.max_score if rule.predicate(raw_answer) else 0
        if isinstance(rule, ClassifierScoring):
            confidence = self.classifier.score_text(raw_answer, question.category)
            return round_half_up(confidence * question.max_score)
        return 0

    def record_answer(self, question_id: int, score: Union[int, Pending], raw_answer: str,
                      response_time_ms: int = 0) -> None:
        question = question_by_id(question_id, self.questions)
        if question is None:
            raise InvalidInputError(f"unknown question id {question_id}")
        self._require(Status.IN_PROGRESS)
        if response_time_ms < 0:
            raise InvalidInputError("response time must be non-negative")

        resolved = self.resolve_score(question, score, raw_answer)
        if not 0 <= resolved <= question.max_score:
            raise InvalidInputError(
                f"score {resolved} for Q{question_id} is outside [0, {question.max_score}]"
            )

        self.answers[question_id] = AnswerRecord(resolved, raw_answer, int(response_time_ms))
        self.total_score = sum(rec.score for rec in self.answers.values())
        logger.debug("Q%d scored %d (total %d)", question_id, resolved, self.total_score)

    def build_features(self) -> AnswerFeatures:
        responses: Dict[str, list] = {}
        for q in self.questions:
            rec = self.answers.get(q.id)
            responses.setdefault(q.category, []).append(rec.score / q.max_score if rec else 0.0)
        return AnswerFeatures(
            category_responses=responses,
            patient_age=self.patient_info.age_years,
            patient_gender=self.patient_info.gender,
            response_times_ms=self.response_times(),
            raw_percentage=percentage(self.total_score, self.max_possible_score),
        )

    def complete(self) -> Optional[AnalysisResult]:
        self._require(Status.IN_PROGRESS)
        self.status = Status.ANALYZING
        try:
            self.analysis_result = self.classifier.analyze(self.build_features())
        except Exception:
            logger.exception("classifier failed, completing without enhanced analysis")
            self.analysis_result = None
        self.status = Status.COMPLETED
        logger.info("examination completed: %d/%d", self.total_score, self.max_possible_score)
        return self.analysis_result

    def reset(self) -> None:
        self.status = Status.NOT_STARTED
        self.current_index = 0
        self.answers = {}
        self.patient_info = PatientInfo()
        self.total_score = 0
        self.analysis_result = None
