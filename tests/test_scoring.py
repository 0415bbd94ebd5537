import pytest

from mmse.classifier import AnalysisResult
from mmse.questions import max_possible_score
from mmse.scoring import SEVERITIES, analyze, classify_percentage, display_status, response_time_rows
from mmse.session import AnswerRecord


class TestAnalyze:
    def test_two_question_catalog(self, two_questions):
        result = analyze({1: 1, 2: 2}, 4, two_questions)
        assert result.total_score == 3
        assert result.percentage_score == pytest.approx(75.0)
        assert result.severity == "Normal"
        assert result.category_breakdown["Registration"] == {"score": 1, "max_score": 1, "percentage": 100.0}
        assert result.category_breakdown["Recall"]["score"] == 2
        assert result.category_breakdown["Recall"]["percentage"] == pytest.approx(200 / 3)

    def test_empty_catalog_is_zero_percent(self):
        result = analyze({}, 0, ())
        assert result.percentage_score == 0
        assert result.category_breakdown == {}
        assert result.severity == "Severe"

    @pytest.mark.parametrize("total", range(0, 14))
    def test_percentage_in_bounds(self, total):
        answers = {3: min(total, 3)}
        remaining = total - answers[3]
        answers[8] = min(remaining, 3)
        remaining -= answers[8]
        for qid in (1, 2, 4, 5, 6, 7, 9):
            if remaining:
                answers[qid] = 1
                remaining -= 1
        result = analyze(answers, max_possible_score())
        assert result.total_score == total
        assert 0 <= result.percentage_score <= 100

    def test_category_max_sums_to_catalog_max(self):
        result = analyze({}, max_possible_score())
        assert sum(c["max_score"] for c in result.category_breakdown.values()) == max_possible_score()

    def test_interpretation_is_static_lookup(self):
        result = analyze({3: 1}, max_possible_score())
        assert result.interpretation == SEVERITIES["Severe"]["interpretation"]
        assert result.color == SEVERITIES["Severe"]["color"]
        assert result.recommendations == SEVERITIES["Severe"]["recommendations"]


class TestThresholds:
    @pytest.mark.parametrize("pct,severity", [
        (100, "Normal"),
        (75, "Normal"),
        (74.99, "Moderate"),
        (45, "Moderate"),
        (44.99, "Severe"),
        (0, "Severe"),
    ])
    def test_bands(self, pct, severity):
        assert classify_percentage(pct) == severity


class TestDisplayStatus:
    def test_baseline_when_no_classifier_result(self):
        baseline = analyze({3: 3, 8: 3, 1: 1, 2: 1, 4: 1}, 13)
        status = display_status(baseline)
        assert status["severity"] == baseline.severity
        assert status["confidence"] is None
        assert status["source"] == "threshold"

    def test_classifier_supersedes_but_baseline_kept(self):
        baseline = analyze({}, 13)
        result = AnalysisResult(severity="Mild", confidence=0.7, category_scores={}, source="model")
        status = display_status(baseline, result)
        assert status["severity"] == "Mild"
        assert status["confidence"] == 0.7
        assert status["color"] == SEVERITIES["Mild"]["color"]
        assert status["interpretation"] == SEVERITIES["Mild"]["interpretation"]
        assert status["baseline"] is baseline
        assert baseline.severity == "Severe"


def test_response_time_rows_sorted_by_id():
    answers = {
        8: AnswerRecord(3, "All", 2500),
        1: AnswerRecord(1, "today", 1200),
    }
    rows = response_time_rows(answers)
    assert [r["id"] for r in rows] == [1, 8]
    assert rows[0] == {"id": 1, "category": "Time", "seconds": 1.2}
    assert rows[1]["category"] == "Recall"
