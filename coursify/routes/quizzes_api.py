from flask import Blueprint, jsonify

from .. import Config
from ..extensions import get_store
from ..storage.schemas import LESSONS, QUIZZES, utcnow_iso
from ..utils.documents import json_payload
from ..utils.ids import prefixed_id

bp = Blueprint("quizzes_api", __name__)

# never sent to learners before they submit
HIDDEN_FIELDS = {"evaluations": 0}


def _is_index_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(i, int) and not isinstance(i, bool) for i in value)


def _question_error(question) -> str | None:
    if (
        not isinstance(question, dict)
        or not question.get("question")
        or not isinstance(question.get("options"), list)
        or len(question["options"]) < 2
        or not _is_index_list(question.get("correctAnswers"))
        or not question["correctAnswers"]
    ):
        return "Each question must have question text, at least 2 options, and correct answers"
    return None


def _number(value, default):
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else default


def grade(quiz: dict, answers: list) -> dict:
    """Score a submission: a question counts when the chosen indices equal the correct ones."""
    questions = quiz.get("questions", [])
    results = []
    correct = 0
    for i, question in enumerate(questions):
        given = answers[i] if i < len(answers) and isinstance(answers[i], list) else []
        expected = question.get("correctAnswers") or []
        is_correct = sorted(given) == sorted(expected)
        correct += int(is_correct)
        results.append({
            "questionIndex": i,
            "question": question.get("question"),
            "userAnswer": given,
            "correctAnswer": expected,
            "isCorrect": is_correct,
            "explanation": question.get("explanation") or "",
        })

    passing = _number(quiz.get("passingScore"), Config.DEFAULT_PASSING_SCORE)
    score = int(correct * 100 / len(questions) + 0.5) if questions else 0
    return {
        "score": score,
        "passed": score >= passing,
        "correctAnswers": correct,
        "totalQuestions": len(questions),
        "passingScore": passing,
        "results": results,
    }


@bp.get("/lessons/<lesson_id>/quizzes")
def list_quizzes(lesson_id):
    quizzes = get_store()[QUIZZES].find({"lessonId": lesson_id}, projection=HIDDEN_FIELDS).to_list()
    return jsonify(quizzes)


@bp.post("/lessons/<lesson_id>/quizzes")
def create_quiz(lesson_id):
    payload = json_payload()
    title = str(payload.get("title") or "").strip()
    questions = payload.get("questions")
    if not title or not isinstance(questions, list) or not questions:
        return jsonify({"error": "Missing required fields or invalid questions"}), 400
    for question in questions:
        err = _question_error(question)
        if err:
            return jsonify({"error": err}), 400

    placement = payload.get("placement") or "end"
    if placement not in Config.QUIZ_PLACEMENTS:
        return jsonify({"error": f"placement must be one of {sorted(Config.QUIZ_PLACEMENTS)}"}), 400

    store = get_store()
    if not store[LESSONS].find_one({"id": lesson_id}):
        return jsonify({"error": "Lesson not found"}), 404

    quizzes = store[QUIZZES]
    result = quizzes.insert_one({
        "lessonId": lesson_id,
        "title": title,
        "description": str(payload.get("description") or ""),
        "timeLimit": _number(payload.get("timeLimit"), Config.DEFAULT_TIME_LIMIT),
        "passingScore": _number(payload.get("passingScore"), Config.DEFAULT_PASSING_SCORE),
        "questions": questions,
        "placement": placement,
        "isPublished": bool(payload.get("isPublished", False)),
        "evaluations": [],
    })
    return jsonify(quizzes.find_one({"id": result.inserted_id})), 201


@bp.get("/quizzes/<quiz_id>")
def get_quiz(quiz_id):
    quiz = get_store()[QUIZZES].find_one({"id": quiz_id})
    if not quiz:
        return jsonify({"error": "Quiz not found"}), 404
    quiz.pop("evaluations", None)
    return jsonify(quiz)


@bp.delete("/quizzes/<quiz_id>")
def delete_quiz(quiz_id):
    result = get_store()[QUIZZES].delete_one({"id": quiz_id})
    if result.deleted_count == 0:
        return jsonify({"error": "Quiz not found"}), 404
    return jsonify({"ok": True, **result.as_dict()})


@bp.post("/quizzes/<quiz_id>/submit")
def submit_quiz(quiz_id):
    payload = json_payload()
    user_id = payload.get("userId")
    answers = payload.get("answers")
    if not user_id or not isinstance(answers, list):
        return jsonify({"error": "userId and answers array are required"}), 400
    if not all(_is_index_list(a) for a in answers):
        return jsonify({"error": "each answer must be a list of option indices"}), 400

    quizzes = get_store()[QUIZZES]
    quiz = quizzes.find_one({"id": quiz_id})
    if not quiz:
        return jsonify({"error": "Quiz not found"}), 404

    # one attempt per user
    existing = next((e for e in quiz["evaluations"] if isinstance(e, dict) and e.get("userId") == user_id), None)
    if existing:
        summary = {k: existing.get(k) for k in ("score", "passed", "correctAnswers", "totalQuestions", "passingScore", "results")}
        return jsonify({"error": "Quiz already submitted by this user", "evaluation": summary}), 409

    outcome = grade(quiz, answers)
    evaluation = {
        "id": prefixed_id("eval"),
        "userId": user_id,
        "quizId": quiz_id,
        **outcome,
        "answers": answers,
        "submittedAt": utcnow_iso(),
    }
    quizzes.update_one({"id": quiz_id}, {"$push": {"evaluations": evaluation}})
    return jsonify({"ok": True, "evaluation": outcome})


@bp.get("/quizzes/<quiz_id>/evaluations/<user_id>")
def get_evaluations(quiz_id, user_id):
    quiz = get_store()[QUIZZES].find_one({"id": quiz_id})
    if not quiz:
        return jsonify({"error": "Quiz not found"}), 404
    evaluations = [e for e in quiz["evaluations"] if isinstance(e, dict) and e.get("userId") == user_id]
    return jsonify({"quizId": quiz_id, "userId": user_id, "evaluations": evaluations})
