import pytest

from conftest import build_test
from core.scoring import is_correct_answer, parse_answer, score_test
from models import IntervalStats, Response, TestMode


def _answer(question_id: str, value: str, is_correct=None) -> Response:
    return Response(question_id=question_id, user_answer=value, is_correct=is_correct)


@pytest.mark.parametrize(
    "raw,expected",
    [("9", 9), ("-4", -4), ("+3", 3), (" 12", 12), ("12abc", 12), ("", None), ("-", None), (None, None)],
)
def test_parse_answer(raw, expected) -> None:
    assert parse_answer(raw) == expected


def test_is_correct_answer() -> None:
    assert is_correct_answer("9", 9) is True
    assert is_correct_answer("8", 9) is False
    assert is_correct_answer("", 9) is None
    assert is_correct_answer("-", 9) is False


def test_oversized_answer_is_attempted_and_wrong() -> None:
    huge = "1" * 5000
    assert is_correct_answer(huge, 9) is False

    test = build_test(section_sizes=(2,))
    result = score_test(test, {"s0-q0": _answer("s0-q0", huge)}, 5)
    assert (result.attempted, result.correct, result.incorrect) == (1, 0, 1)


def test_score_full_sheet_with_mixed_answers() -> None:
    test = build_test(section_sizes=(66,))
    responses = {}
    questions = test.questions()
    # 50 correct, 10 wrong, 6 untouched
    for question in questions[:50]:
        responses[question.id] = _answer(question.id, str(question.correct_answer))
    for question in questions[50:60]:
        responses[question.id] = _answer(question.id, str(question.correct_answer + 1))

    result = score_test(test, responses, time_taken=1200)

    assert result.total_questions == 66
    assert result.attempted == 60
    assert result.correct == 50
    assert result.incorrect == 10
    assert result.unanswered == 6
    assert result.score == pytest.approx(50 / 66 * 100)
    assert result.time_taken == 1200
    assert result.section_results[0].accuracy == pytest.approx(50 / 60 * 100)


def test_section_results_add_up_to_totals() -> None:
    test = build_test(section_sizes=(3, 4, 2))
    responses = {
        "s0-q0": _answer("s0-q0", "0"),
        "s0-q1": _answer("s0-q1", "7"),
        "s1-q2": _answer("s1-q2", "102"),
        "s2-q1": _answer("s2-q1", "201"),
    }

    result = score_test(test, responses, time_taken=30)

    assert sum(s.total for s in result.section_results) == result.total_questions == 9
    assert sum(s.attempted for s in result.section_results) == result.attempted == 4
    assert sum(s.correct for s in result.section_results) == result.correct == 3
    assert result.correct + result.incorrect + result.unanswered == result.total_questions


def test_client_correctness_flag_is_ignored() -> None:
    test = build_test(section_sizes=(2,))
    responses = {"s0-q0": _answer("s0-q0", "5", is_correct=True)}

    result = score_test(test, responses, time_taken=0)

    assert result.correct == 0
    assert result.incorrect == 1


def test_empty_answers_count_as_unanswered() -> None:
    test = build_test(section_sizes=(2,))
    responses = {"s0-q0": _answer("s0-q0", "")}

    result = score_test(test, responses, time_taken=0)

    assert result.attempted == 0
    assert result.unanswered == 2
    assert result.section_results[0].accuracy == 0.0


def test_empty_test_scores_zero() -> None:
    test = build_test(section_sizes=())
    result = score_test(test, {}, time_taken=0)
    assert result.score == 0.0
    assert result.total_questions == 0


def test_intervals_are_carried_through() -> None:
    test = build_test(mode=TestMode.TEST, section_sizes=(1,))
    interval = IntervalStats(1, 0, 10, 1, 1, 0, 10.0)
    result = score_test(test, {}, time_taken=10, intervals=[interval])
    assert result.intervals == [interval]
