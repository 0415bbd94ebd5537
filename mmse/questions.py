from __future__ import annotations

"""MMSE question catalog.

The catalog is hand-authored and trusted. Each question carries exactly one
scoring rule, chosen here when the catalog is built:

* ``FixedChoiceScoring`` - the selected option's score is used as-is.
* ``PredicateScoring``   - a deterministic check on the free-text answer.
* ``ClassifierScoring``  - the text is handed to the classifier.
* ``ManualScoring``      - free text that is not auto-scored (resolves to 0).
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

MULTIPLE_CHOICE = "multiple-choice"
FREE_TEXT = "free-text"
DRAWING = "drawing"
RESPONSE_KINDS = (MULTIPLE_CHOICE, FREE_TEXT, DRAWING)

RECALL_WORDS = ("apple", "table", "penny")


@dataclass(frozen=True)
class Option:
    label: str
    score: int


@dataclass(frozen=True)
class FixedChoiceScoring:
    options: Tuple[Option, ...]


@dataclass(frozen=True)
class PredicateScoring:
    predicate: Callable[[str], bool]


@dataclass(frozen=True)
class ClassifierScoring:
    pass


@dataclass(frozen=True)
class ManualScoring:
    pass


ScoringRule = Union[FixedChoiceScoring, PredicateScoring, ClassifierScoring, ManualScoring]


@dataclass(frozen=True)
class Question:
    id: int
    category: str
    text: str
    response_kind: str
    max_score: int
    scoring: ScoringRule
    instructions: Optional[str] = None
    expected_answers: Tuple[str, ...] = field(default_factory=tuple)
    image: Optional[str] = None

    def __post_init__(self) -> None:
        if self.id <= 0:
            raise ValueError(f"question id must be positive, got {self.id}")
        if self.max_score <= 0:
            raise ValueError(f"Q{self.id}: max_score must be positive")
        if self.response_kind not in RESPONSE_KINDS:
            raise ValueError(f"Q{self.id}: unknown response kind {self.response_kind!r}")
        for opt in self.options:
            if not 0 <= opt.score <= self.max_score:
                raise ValueError(f"Q{self.id}: option {opt.label!r} scores outside [0, {self.max_score}]")

    @property
    def options(self) -> Tuple[Option, ...]:
        if isinstance(self.scoring, FixedChoiceScoring):
            return self.scoring.options
        return ()

    @property
    def validation_function(self) -> Optional[Callable[[str], bool]]:
        if isinstance(self.scoring, PredicateScoring):
            return self.scoring.predicate
        return None

    @property
    def auto_score(self) -> bool:
        return isinstance(self.scoring, (PredicateScoring, ClassifierScoring))

    @property
    def short_category(self) -> str:
        return self.category.split(" ")[-1]


# ─────────────────────────────────────────────────────────────────────────────
# Answer checks
# ─────────────────────────────────────────────────────────────────────────────
_PLACE_RE = re.compile(r"\b(hospital|clinic|doctor'?s?\s+office|surgery)\b", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\b(watch|wristwatch|clock|timepiece)\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_WORD_RE = re.compile(r"[A-Za-z']+")
_SCALE_WORDS = {"hundred", "thousand", "million"}


def names_a_clinical_place(answer: str) -> bool:
    return bool(_PLACE_RE.search(answer))


def names_a_watch(answer: str) -> bool:
    return bool(_OBJECT_RE.search(answer))


def equals_number(target: float, tolerance: float = 0.5, words: Sequence[str] = ()) -> Callable[[str], bool]:
    """Check that the answer contains ``target`` as digits or as one of ``words``.

    A spelled-out match only counts when it is not part of a larger number
    ("one hundred ninety three").
    """
    spelled = [re.sub(r"[\s-]+", " ", w.lower()).split() for w in words]

    def check(answer: str) -> bool:
        for raw in _NUMBER_RE.findall(answer):
            if abs(float(raw) - target) <= tolerance:
                return True
        tokens = _WORD_RE.findall(answer.lower().replace("-", " "))
        for phrase in spelled:
            n = len(phrase)
            for i in range(len(tokens) - n + 1):
                if tokens[i:i + n] != phrase:
                    continue
                before = tokens[:i]
                if before and before[-1] == "and":
                    before = before[:-1]
                if before and before[-1] in _SCALE_WORDS:
                    continue
                if i + n < len(tokens) and tokens[i + n] in _SCALE_WORDS:
                    continue
                return True
        return False

    return check


def spells(expected: str) -> Callable[[str], bool]:
    """Match the letters of the answer, ignoring case, spaces and separators."""
    expected = expected.upper()

    def check(answer: str) -> bool:
        return re.sub(r"[^A-Za-z]", "", answer).upper() == expected

    return check


def is_sentence(answer: str) -> bool:
    # subject + verb at minimum
    return len(answer.split()) >= 2 and bool(_WORD_RE.search(answer))


def _word_choice(verb: str) -> FixedChoiceScoring:
    return FixedChoiceScoring((
        Option(f"All 3 words {verb} correctly", 3),
        Option(f"2 words {verb} correctly", 2),
        Option(f"1 word {verb} correctly", 1),
        Option(f"0 words {verb} correctly", 0),
    ))


# ─────────────────────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────────────────────
QUESTIONS: Tuple[Question, ...] = (
    Question(
        id=1, category="Orientation to Time", text="What is today's date?",
        response_kind=FREE_TEXT, max_score=1, scoring=ClassifierScoring(),
    ),
    Question(
        id=2, category="Orientation to Place", text="Where are you right now?",
        response_kind=FREE_TEXT, max_score=1, scoring=PredicateScoring(names_a_clinical_place),
        expected_answers=("Hospital", "Clinic", "Doctor's office"),
    ),
    Question(
        id=3, category="Registration", text="Can you repeat the words: 'apple, table, penny'?",
        instructions="Score based on first attempt.",
        response_kind=MULTIPLE_CHOICE, max_score=3, scoring=_word_choice("repeated"),
    ),
    Question(
        id=4, category="Calculation", text="What is 100 minus 7?",
        response_kind=FREE_TEXT, max_score=1,
        scoring=PredicateScoring(equals_number(93, words=("ninety-three",))),
        expected_answers=("93",),
    ),
    Question(
        id=5, category="Current Events", text="What is the name of the current President?",
        response_kind=FREE_TEXT, max_score=1, scoring=ClassifierScoring(),
    ),
    Question(
        id=6, category="Attention", text="Can you spell 'WORLD' backward?",
        instructions="Enter the patient's response. The correct answer is 'DLROW'.",
        response_kind=FREE_TEXT, max_score=1, scoring=PredicateScoring(spells("DLROW")),
        expected_answers=("DLROW", "dlrow"),
    ),
    Question(
        id=7, category="Object Recognition", text="What is this object called?",
        instructions="Show the patient a picture of a watch.",
        response_kind=FREE_TEXT, max_score=1, scoring=PredicateScoring(names_a_watch),
        expected_answers=("Watch", "Wristwatch", "Clock"),
        image="images/watch.jpg",
    ),
    Question(
        id=8, category="Recall", text="Can you recall the three words I mentioned earlier?",
        instructions="The patient should recall 'apple, table, penny'.",
        response_kind=MULTIPLE_CHOICE, max_score=3, scoring=_word_choice("recalled"),
    ),
    Question(
        id=9, category="Language", text="Can you write a complete sentence?",
        instructions="The sentence should contain a subject and a verb and make sense.",
        response_kind=FREE_TEXT, max_score=1, scoring=PredicateScoring(is_sentence),
    ),
)

_BY_ID: Dict[int, Question] = {q.id: q for q in QUESTIONS}
assert len(_BY_ID) == len(QUESTIONS), "duplicate question ids"


def all_questions() -> Tuple[Question, ...]:
    return QUESTIONS


def question_by_id(question_id: int, questions: Sequence[Question] = QUESTIONS) -> Optional[Question]:
    if questions is QUESTIONS:
        return _BY_ID.get(question_id)
    for q in questions:
        if q.id == question_id:
            return q
    return None


def max_possible_score(questions: Sequence[Question] = QUESTIONS) -> int:
    return sum(q.max_score for q in questions)


def category_totals(
    answers: Mapping[int, int], questions: Sequence[Question] = QUESTIONS
) -> Dict[str, Dict[str, int]]:
    """Fold every question into its category bucket.

    Unanswered questions add their ``max_score`` and contribute 0 points.
    """
    totals: Dict[str, Dict[str, int]] = {}
    for q in questions:
        bucket = totals.setdefault(q.category, {"score": 0, "max_score": 0})
        bucket["max_score"] += q.max_score
        if q.id in answers:
            bucket["score"] += answers[q.id]
    return totals
