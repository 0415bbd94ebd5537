import pytest

from mmse.questions import FixedChoiceScoring, ManualScoring, Option, Question
from mmse.session import ExaminationSession, PatientInfo


def make_question(qid, category, max_score, scoring=None, kind="free-text"):
    return Question(id=qid, category=category, text=f"Question {qid}",
                    response_kind=kind, max_score=max_score, scoring=scoring or ManualScoring())


@pytest.fixture
def two_questions():
    return (
        make_question(1, "Registration", 1),
        make_question(2, "Recall", 3, FixedChoiceScoring((
            Option("All", 3), Option("Two", 2), Option("One", 1), Option("None", 0),
        )), kind="multiple-choice"),
    )


@pytest.fixture
def patient():
    return PatientInfo(name="Ada Lovelace", age="72", gender="Female")


@pytest.fixture
def started(patient):
    exam = ExaminationSession()
    exam.start(patient)
    return exam
