from types import SimpleNamespace

from mmse.config import AppConfig
from mmse.narrative import (
    FAILURE_MESSAGE,
    NO_KEY_MESSAGE,
    build_prompt,
    split_recommendations,
    summarize,
)
from mmse.questions import max_possible_score
from mmse.scoring import analyze
from mmse.session import PatientInfo

PATIENT = PatientInfo(name="Ada Lovelace", age="72", gender="Female")
REPLY = (
    "The patient shows intact registration but impaired recall.\n\n"
    "Recommendations:\n"
    "- Repeat the MMSE in six months\n"
    "- Refer to a memory clinic\n"
    "1. Review current medication"
)


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


def fake_client(**kwargs):
    return SimpleNamespace(messages=FakeMessages(**kwargs))


def baseline():
    return analyze({3: 3, 8: 1, 6: 1}, max_possible_score())


def test_missing_key_returns_placeholder_without_calling():
    client = fake_client(text=REPLY)
    summary = summarize(baseline(), PATIENT, AppConfig(), client=client)
    assert summary.analysis == NO_KEY_MESSAGE
    assert not summary.ok
    assert client.messages.calls == []


def test_successful_summary():
    client = fake_client(text=REPLY)
    cfg = AppConfig(api_key="sk-ant-test", narrative_model="claude-test", max_tokens=300)
    summary = summarize(baseline(), PATIENT, cfg, client=client)

    assert summary.ok
    assert summary.analysis == "The patient shows intact registration but impaired recall."
    assert summary.recommendations == [
        "Repeat the MMSE in six months",
        "Refer to a memory clinic",
        "Review current medication",
    ]
    call = client.messages.calls[0]
    assert call["model"] == "claude-test"
    assert call["max_tokens"] == 300
    assert "Ada Lovelace" in call["messages"][0]["content"]


def test_api_failure_degrades():
    client = fake_client(error=ConnectionError("network down"))
    summary = summarize(baseline(), PATIENT, AppConfig(api_key="sk-ant-test"), client=client)
    assert summary.analysis == FAILURE_MESSAGE
    assert summary.error == "network down"


def test_empty_reply_degrades():
    client = fake_client(text="   ")
    summary = summarize(baseline(), PATIENT, AppConfig(api_key="sk-ant-test"), client=client)
    assert summary.analysis == FAILURE_MESSAGE


def test_prompt_lists_categories_and_overall():
    prompt = build_prompt(baseline(), PATIENT)
    assert "Overall score: 5 out of 13 (38%)" in prompt
    assert "- Registration: 3/3 (100%)" in prompt
    assert "- Recall: 1/3 (33%)" in prompt
    assert "Below 45%" in prompt


def test_split_without_recommendations_section():
    summary = split_recommendations("Just an analysis paragraph.")
    assert summary.analysis == "Just an analysis paragraph."
    assert summary.recommendations == []
