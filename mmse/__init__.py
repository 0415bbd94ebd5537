"""
MMSE Assessment core
====================
Question catalog, examination session, scoring pipeline and the
classifier / narrative collaborators used by the Streamlit app.
"""

from .errors import ConfigError, ExaminationError, InvalidInputError, InvalidStateError
from .questions import all_questions, category_totals, max_possible_score, question_by_id
from .scoring import ScoreAnalysis, analyze
from .session import PENDING, AnswerRecord, ExaminationSession, PatientInfo, Status

__version__ = "0.1.0"
