"""Tests for answer correctness rules and coin accounting."""

from datetime import timedelta

import pytest
from bson import ObjectId

from quiz_api.core.exceptions import InvalidInputError, NotFoundError
from quiz_api.schemas.answer_schemas import AnswerItem
from quiz_api.services.scoring import evaluate_answer, score_answers, score_resolved


def item(question_id, *answers):
    return AnswerItem(questionId=str(question_id), userAnswers=list(answers))


def test_multiple_choice_matches_correct_option_text():
    question = {
        "type": "multiple-choice",
        "options": [{"text": "Paris", "isCorrect": True}, {"text": "Lyon", "isCorrect": False}],
    }
    assert evaluate_answer(question, ["Paris"]) is True
    assert evaluate_answer(question, ["Lyon"]) is False
    assert evaluate_answer(question, ["Lyon", "Paris"]) is True


def test_input_matches_any_accepted_answer():
    question = {"type": "input", "correctAnswers": ["4", "four"]}
    assert evaluate_answer(question, ["four"]) is True
    assert evaluate_answer(question, ["Four"]) is False


def test_fill_in_the_blank_compares_by_position_with_first_accepted_answer():
    question = {
        "type": "fill-in-the-blank",
        "blanks": [
            {"position": 1, "correctAnswers": ["cat", "kitty"]},
            {"position": 2, "correctAnswers": ["dog"]},
        ],
    }
    assert evaluate_answer(question, ["cat"]) is True
    assert evaluate_answer(question, ["kitty"]) is False
    assert evaluate_answer(question, ["x", "dog"]) is True
    assert evaluate_answer(question, ["dog", "cat"]) is False


def test_fill_in_the_blank_ignores_answers_beyond_blanks():
    question = {"type": "fill-in-the-blank", "blanks": [{"position": 1, "correctAnswers": ["cat"]}]}
    assert evaluate_answer(question, ["dog", "cat"]) is False


def test_rule_without_data_leaves_answer_incorrect():
    assert evaluate_answer({"type": "input", "correctAnswers": []}, ["x"]) is False
    assert evaluate_answer({"type": "multiple-choice"}, ["x"]) is False


def test_unknown_type_is_never_correct():
    question = {"type": "essay", "correctAnswers": ["x"], "options": [{"text": "x", "isCorrect": True}]}
    assert evaluate_answer(question, ["x"]) is False


def test_image_question_last_applicable_rule_wins():
    question = {
        "type": "image",
        "correctAnswers": ["dog"],
        "blanks": [{"position": 1, "correctAnswers": ["cat"]}],
    }
    # correctAnswers принимает ответ, но решает правило пропусков
    assert evaluate_answer(question, ["dog"]) is False
    assert evaluate_answer(question, ["cat"]) is True


def test_media_question_options_overridden_by_correct_answers():
    question = {
        "type": "video",
        "options": [{"text": "A", "isCorrect": True}],
        "correctAnswers": ["B"],
    }
    assert evaluate_answer(question, ["A"]) is False
    assert evaluate_answer(question, ["B"]) is True


def test_media_question_with_options_only():
    question = {"type": "audio", "options": [{"text": "A", "isCorrect": True}]}
    assert evaluate_answer(question, ["A"]) is True


def test_score_resolved_sums_coins_of_correct_answers_in_order():
    q1, q2 = ObjectId(), ObjectId()
    questions = {
        str(q1): {"_id": q1, "type": "input", "correctAnswers": ["yes"], "coins": 7},
        str(q2): {"_id": q2, "type": "input", "correctAnswers": ["yes"], "coins": 3},
    }
    result = score_resolved([item(q2, "no"), item(q1, "yes")], questions)

    assert result.correct_count == 1
    assert result.total_coins == 7
    assert [a.question_id for a in result.scored_answers] == [str(q2), str(q1)]
    assert [a.is_correct for a in result.scored_answers] == [False, True]


def test_score_resolved_rejects_unknown_question():
    with pytest.raises(InvalidInputError, match="Question not found for ID"):
        score_resolved([item(ObjectId(), "x")], {})


@pytest.mark.asyncio
async def test_scenario_capital_of_france(db, user, questions):
    result = await score_answers(db, str(user["_id"]), [item(questions["q1"]["_id"], "Paris")])
    assert (result.correct_count, result.total_coins) == (1, 10)


@pytest.mark.asyncio
async def test_scenario_fill_in_the_blank(db, user, questions):
    qid = questions["q2"]["_id"]
    wrong = await score_answers(db, str(user["_id"]), [item(qid, "dog")])
    right = await score_answers(db, str(user["_id"]), [item(qid, "cat")])

    assert (wrong.correct_count, wrong.total_coins) == (0, 0)
    assert (right.correct_count, right.total_coins) == (1, 5)


@pytest.mark.asyncio
async def test_score_answers_validation_order(db, user, questions):
    with pytest.raises(InvalidInputError, match="Invalid userId format"):
        await score_answers(db, "u1", [item(questions["q1"]["_id"], "Paris")])

    with pytest.raises(NotFoundError, match="User not found"):
        await score_answers(db, str(ObjectId()), [item(questions["q1"]["_id"], "Paris")])

    with pytest.raises(InvalidInputError, match="answers cannot be empty"):
        await score_answers(db, str(user["_id"]), [])

    with pytest.raises(InvalidInputError, match="One or more question IDs are invalid"):
        await score_answers(db, str(user["_id"]), [item("Q1", "Paris")])

    with pytest.raises(InvalidInputError, match="One or more questions not found"):
        await score_answers(db, str(user["_id"]), [item(ObjectId(), "Paris")])


@pytest.mark.asyncio
async def test_duplicate_question_ids_are_rejected(db, user, questions):
    qid = questions["q1"]["_id"]
    with pytest.raises(InvalidInputError, match="One or more questions not found"):
        await score_answers(db, str(user["_id"]), [item(qid, "Paris"), item(qid, "Lyon")])


def test_missing_timestamp_defaults_to_aware_utc_submission_time():
    qid = ObjectId()
    questions = {str(qid): {"_id": qid, "type": "input", "correctAnswers": ["yes"], "coins": 1}}

    result = score_resolved([item(qid, "yes")], questions)

    assert result.scored_answers[0].timestamp.utcoffset() == timedelta(0)
