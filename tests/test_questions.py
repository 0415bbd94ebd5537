import pytest

from mmse.questions import (
    ClassifierScoring,
    FixedChoiceScoring,
    ManualScoring,
    Option,
    PredicateScoring,
    Question,
    all_questions,
    category_totals,
    equals_number,
    is_sentence,
    max_possible_score,
    names_a_clinical_place,
    names_a_watch,
    question_by_id,
    spells,
)


class TestCatalog:
    def test_order_and_ids(self):
        ids = [q.id for q in all_questions()]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)
        assert all_questions() is all_questions()

    def test_max_possible_score(self):
        assert max_possible_score() == 13
        assert max_possible_score(()) == 0

    def test_question_by_id(self):
        assert question_by_id(6).category == "Attention"
        assert question_by_id(999) is None

    def test_scoring_rules_are_resolved_once(self):
        q3 = question_by_id(3)
        assert isinstance(q3.scoring, FixedChoiceScoring)
        assert [o.score for o in q3.options] == [3, 2, 1, 0]
        assert not q3.auto_score

        q6 = question_by_id(6)
        assert q6.validation_function is not None
        assert q6.auto_score

        q1 = question_by_id(1)
        assert isinstance(q1.scoring, ClassifierScoring)
        assert q1.validation_function is None
        assert q1.auto_score

    def test_option_score_above_max_rejected(self):
        with pytest.raises(ValueError):
            Question(id=1, category="X", text="?", response_kind="multiple-choice", max_score=1,
                     scoring=FixedChoiceScoring((Option("too much", 2),)))

    def test_unknown_response_kind_rejected(self):
        with pytest.raises(ValueError):
            Question(id=1, category="X", text="?", response_kind="voice", max_score=1,
                     scoring=ManualScoring())


class TestCategoryTotals:
    def test_unanswered_counts_as_zero(self):
        totals = category_totals({})
        assert totals["Registration"] == {"score": 0, "max_score": 3}
        assert sum(t["max_score"] for t in totals.values()) == max_possible_score()

    def test_answers_added_to_their_category(self):
        totals = category_totals({3: 2, 8: 3, 6: 1})
        assert totals["Registration"]["score"] == 2
        assert totals["Recall"]["score"] == 3
        assert totals["Attention"]["score"] == 1
        assert totals["Language"]["score"] == 0

    def test_categories_follow_catalog_order(self):
        assert list(category_totals({}))[0] == "Orientation to Time"


class TestPredicates:
    @pytest.mark.parametrize("answer,expected", [
        ("I'm at the hospital", True),
        ("Doctor's office", True),
        ("a CLINIC", True),
        ("at home", False),
    ])
    def test_place(self, answer, expected):
        assert names_a_clinical_place(answer) is expected

    @pytest.mark.parametrize("answer,expected", [
        ("93", True),
        ("It is 93.", True),
        ("ninety-three", True),
        ("Ninety three", True),
        ("94", False),
        ("100 - 7", False),
        ("one hundred ninety three", False),
        ("one hundred and ninety-three", False),
        ("ninety three thousand", False),
        ("I think it is ninety three", True),
    ])
    def test_calculation(self, answer, expected):
        assert equals_number(93, words=("ninety-three",))(answer) is expected

    @pytest.mark.parametrize("answer,expected", [
        ("DLROW", True),
        ("d l r o w", True),
        ("D-L-R-O-W", True),
        ("world", False),
    ])
    def test_spelling(self, answer, expected):
        assert spells("DLROW")(answer) is expected

    def test_watch(self):
        assert names_a_watch("a wristwatch")
        assert names_a_watch("Wrist watch")
        assert not names_a_watch("a phone")

    def test_sentence(self):
        assert is_sentence("The dog runs.")
        assert is_sentence("Call 911")
        assert not is_sentence("Hello")
        assert not is_sentence("123 456")

    def test_catalog_predicates_wired(self):
        assert isinstance(question_by_id(4).scoring, PredicateScoring)
        assert question_by_id(4).validation_function("93")
        assert not question_by_id(9).validation_function("dog")
