from flask import Blueprint, jsonify, request

from .. import Config
from ..extensions import get_store
from ..storage.schemas import COURSES, LESSONS
from ..utils.documents import by_order, json_payload

bp = Blueprint("lessons_api", __name__)


@bp.get("/courses/<course_id>/lessons")
def list_lessons(course_id):
    query = {"courseId": course_id}
    if request.args.get("status"):
        query["status"] = request.args["status"]
    return jsonify(by_order(get_store()[LESSONS].find(query).to_list()))


@bp.post("/courses/<course_id>/lessons")
def create_lesson(course_id):
    payload = json_payload()
    title = str(payload.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Missing field: title"}), 400

    store = get_store()
    if not store[COURSES].find_one({"id": course_id}):
        return jsonify({"error": "Course not found"}), 404

    lessons = store[LESSONS]
    order = payload.get("order")
    if not isinstance(order, int) or isinstance(order, bool):
        order = len(lessons.find({"courseId": course_id}).to_list()) + 1

    status = payload.get("status") or "DRAFT"
    if status not in Config.LESSON_STATUSES:
        return jsonify({"error": f"status must be one of {sorted(Config.LESSON_STATUSES)}"}), 400

    result = lessons.insert_one({
        "courseId": course_id,
        "title": title,
        "description": str(payload.get("description") or ""),
        "order": order,
        "status": status,
    })
    return jsonify(lessons.find_one({"id": result.inserted_id})), 201


@bp.get("/lessons/<lesson_id>")
def get_lesson(lesson_id):
    # older clients address lessons by "_id"
    lesson = get_store()[LESSONS].find_one({"_id": lesson_id})
    if not lesson:
        return jsonify({"error": "Lesson not found"}), 404
    return jsonify(lesson)


@bp.patch("/lessons/<lesson_id>")
def update_lesson(lesson_id):
    updates = {k: v for k, v in json_payload().items() if k not in {"id", "courseId", "createdAt"}}
    if "status" in updates and updates["status"] not in Config.LESSON_STATUSES:
        return jsonify({"error": f"status must be one of {sorted(Config.LESSON_STATUSES)}"}), 400

    lessons = get_store()[LESSONS]
    result = lessons.update_one({"_id": lesson_id}, {"$set": updates})
    if result.matched_count == 0:
        return jsonify({"error": "Lesson not found"}), 404
    return jsonify(lessons.find_one({"id": lesson_id}))


@bp.delete("/lessons/<lesson_id>")
def delete_lesson(lesson_id):
    result = get_store()[LESSONS].delete_one({"_id": lesson_id})
    if result.deleted_count == 0:
        return jsonify({"error": "Lesson not found"}), 404
    return jsonify({"ok": True, **result.as_dict()})
