from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

APP = str(Path(__file__).resolve().parent.parent / "mmse_app.py")


def click(at, label):
    next(b for b in at.button if b.label == label).click()
    return at.run()


@pytest.fixture
def exam_screen(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("MMSE_MODEL_PATH", raising=False)
    at = AppTest.from_file(APP, default_timeout=10).run()
    inputs = {w.label: w for w in at.text_input}
    inputs["Patient name"].input("Ada Lovelace")
    inputs["Patient age"].input("72")
    at.radio[0].set_value("Female")
    click(at, "Begin Assessment")
    assert at.session_state["screen"] == "exam"
    return at


def test_empty_submit_warns_and_records_nothing(exam_screen):
    at = click(exam_screen, "Submit Answer")
    assert any("enter the patient's answer" in w.value for w in at.warning)
    assert at.session_state["exam"].answers == {}


def test_typed_answer_records_on_first_click(exam_screen):
    at = exam_screen
    at.text_area(key="text_1").input("today")
    at = click(at, "Submit Answer")
    assert not at.exception
    record = at.session_state["exam"].answers[1]
    assert record.raw_answer == "today"
