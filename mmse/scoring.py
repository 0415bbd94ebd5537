"""
Scoring & interpretation.

Severity bands (percentage of the maximum possible score):
    >= 75        Normal
    45 .. < 75   Moderate
    < 45         Severe
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .questions import QUESTIONS, Question, category_totals

NORMAL_CUTOFF = 75.0
MODERATE_CUTOFF = 45.0

SEVERITIES = {
    "Normal": {
        "color": "#3aae6a", "emoji": "🟢",
        "interpretation": "Cognitive function appears to be within normal parameters.",
        "recommendations": [
            "Maintain cognitive health through regular mental exercises and social engagement.",
        ],
    },
    # Only produced by the trained classifier.
    "Mild": {
        "color": "#c8a820", "emoji": "🟡",
        "interpretation": "Indicates mild cognitive impairment. A follow-up assessment is advisable.",
        "recommendations": [
            "Consider a follow-up assessment with a healthcare professional.",
            "Engage in regular cognitive exercises targeting areas of weakness.",
        ],
    },
    "Moderate": {
        "color": "#e08c3a", "emoji": "🟠",
        "interpretation": "Indicates moderate cognitive impairment. Follow-up with a healthcare provider is recommended.",
        "recommendations": [
            "Comprehensive evaluation by a neurologist or geriatric specialist is recommended.",
            "Consider structured cognitive rehabilitation therapy.",
            "Evaluation for possible medication or treatment options.",
        ],
    },
    "Severe": {
        "color": "#e05c5c", "emoji": "🔴",
        "interpretation": "Indicates severe cognitive impairment. Immediate medical consultation is recommended.",
        "recommendations": [
            "Comprehensive evaluation by a neurologist or geriatric specialist is recommended.",
            "Consider structured cognitive rehabilitation therapy.",
            "Evaluation for possible medication or treatment options.",
        ],
    },
}


@dataclass
class ScoreAnalysis:
    total_score: int
    max_possible_score: int
    percentage_score: float
    category_breakdown: Dict[str, Dict[str, float]] = field(default_factory=dict)
    severity: str = "Severe"
    interpretation: str = ""
    color: str = ""

    @property
    def recommendations(self) -> List[str]:
        return list(SEVERITIES[self.severity]["recommendations"])


def percentage(score: float, max_score: float) -> float:
    if not max_score:
        return 0.0
    return 100.0 * score / max_score


def classify_percentage(pct: float) -> str:
    if pct >= NORMAL_CUTOFF:
        return "Normal"
    if pct >= MODERATE_CUTOFF:
        return "Moderate"
    return "Severe"


def analyze(
    answers: Mapping[int, int],
    max_possible_score: int,
    questions: Sequence[Question] = QUESTIONS,
) -> ScoreAnalysis:
    """Compute the baseline analysis for a set of per-question scores."""
    total = sum(answers.values())
    pct = percentage(total, max_possible_score)

    breakdown = {}
    for category, data in category_totals(answers, questions).items():
        breakdown[category] = {
            "score": data["score"],
            "max_score": data["max_score"],
            "percentage": percentage(data["score"], data["max_score"]),
        }

    severity = classify_percentage(pct)
    return ScoreAnalysis(
        total_score=total,
        max_possible_score=max_possible_score,
        percentage_score=pct,
        category_breakdown=breakdown,
        severity=severity,
        interpretation=SEVERITIES[severity]["interpretation"],
        color=SEVERITIES[severity]["color"],
    )


def display_status(analysis: ScoreAnalysis, analysis_result: Optional[Any] = None) -> Dict[str, Any]:
    """Pick what the results screen headlines.

    A classifier result supersedes the threshold severity; the baseline is
    always returned alongside it.
    """
    if analysis_result is None:
        return {
            "severity": analysis.severity,
            "confidence": None,
            "interpretation": analysis.interpretation,
            "color": analysis.color,
            "source": "threshold",
            "baseline": analysis,
        }
    severity = analysis_result.severity
    info = SEVERITIES.get(severity, SEVERITIES[analysis.severity])
    return {
        "severity": severity,
        "confidence": analysis_result.confidence,
        "interpretation": info["interpretation"],
        "color": info["color"],
        "source": analysis_result.source,
        "baseline": analysis,
    }


def response_time_rows(answers: Mapping[int, Any], questions: Sequence[Question] = QUESTIONS) -> List[Dict[str, Any]]:
    """Chart rows for every answered question, sorted by id."""
    by_id = {q.id: q for q in questions}
    rows = []
    for qid in sorted(answers):
        q = by_id.get(qid)
        rows.append({
            "id": qid,
            "category": q.short_category if q else "",
            "seconds": answers[qid].response_time_ms / 1000.0,
        })
    return rows
