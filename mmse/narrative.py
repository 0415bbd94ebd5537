"""
Narrative summary via the Anthropic Messages API.

A missing API key is an expected condition and returns a placeholder without
calling the API. Failures are logged and also return a placeholder; nothing
here raises to the caller. There are no automatic retries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

import anthropic

from .config import AppConfig
from .scoring import MODERATE_CUTOFF, NORMAL_CUTOFF, ScoreAnalysis
from .session import PatientInfo

logger = logging.getLogger(__name__)

NO_KEY_MESSAGE = "To enable enhanced AI analysis, please configure your Anthropic API key."
FAILURE_MESSAGE = "Could not generate enhanced analysis. Using standard assessment results instead."

_SECTION_RE = re.compile(r"Recommendations:|Suggested next steps:|Next steps:", re.IGNORECASE)
_BULLET_RE = re.compile(r"(?:^|\n)\s*(?:[•\-\*]|\d+[.)])\s+")


@dataclass
class NarrativeSummary:
    analysis: str
    recommendations: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def get_client(api_key: str) -> anthropic.Anthropic:
    return anthropic.Anthropic(api_key=api_key)


def build_prompt(analysis: ScoreAnalysis, patient: PatientInfo) -> str:
    lines = [
        f"- {category}: {data['score']}/{data['max_score']} ({round(data['percentage'])}%)"
        for category, data in analysis.category_breakdown.items()
    ]
    return (
        f"Analyze the following Mini-Mental State Examination (MMSE) results.\n\n"
        f"Patient information:\n"
        f"- Name: {patient.name}\n"
        f"- Age: {patient.age}\n"
        f"- Gender: {patient.gender}\n\n"
        f"Overall score: {analysis.total_score} out of {analysis.max_possible_score} "
        f"({round(analysis.percentage_score)}%)\n\n"
        f"Category breakdown:\n" + "\n".join(lines) + "\n\n"
        f"Score bands used by this screening:\n"
        f"- Below {MODERATE_CUTOFF:g}%: severe cognitive impairment\n"
        f"- {MODERATE_CUTOFF:g}% to {NORMAL_CUTOFF:g}%: moderate cognitive impairment\n"
        f"- {NORMAL_CUTOFF:g}% and above: normal cognitive function\n\n"
        f"Please provide:\n"
        f"1. A short clinical analysis of the cognitive status\n"
        f"2. Specific areas of concern based on the category scores\n"
        f"3. Three to five evidence-based recommendations for next steps\n\n"
        f"Write the analysis in paragraph form, then a section starting with "
        f"'Recommendations:' as a bulleted list."
    )


def split_recommendations(text: str) -> NarrativeSummary:
    sections = _SECTION_RE.split(text, maxsplit=1)
    analysis = sections[0].strip()
    recs: List[str] = []
    if len(sections) > 1:
        recs = [item.strip() for item in _BULLET_RE.split(sections[1]) if item.strip()]
    return NarrativeSummary(analysis=analysis, recommendations=recs)


def summarize(
    analysis: ScoreAnalysis,
    patient: PatientInfo,
    config: AppConfig,
    client: Optional[Any] = None,
) -> NarrativeSummary:
    """Ask the model for a narrative summary of the results."""
    if not config.has_api_key:
        logger.info("no API key configured, skipping narrative summary")
        return NarrativeSummary(analysis=NO_KEY_MESSAGE, error="No API key configured")

    try:
        client = client or get_client(config.api_key)
        response = client.messages.create(
            model=config.narrative_model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            messages=[{"role": "user", "content": build_prompt(analysis, patient)}],
        )
        raw = response.content[0].text.strip()
    except Exception as exc:
        logger.exception("narrative summary request failed")
        return NarrativeSummary(analysis=FAILURE_MESSAGE, error=str(exc) or exc.__class__.__name__)

    if not raw:
        return NarrativeSummary(analysis=FAILURE_MESSAGE, error="Empty response")
    return split_recommendations(raw)
