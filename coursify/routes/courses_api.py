from flask import Blueprint, current_app, jsonify, request

from .. import Config
from ..extensions import get_store
from ..storage.schemas import COURSES, LESSONS, REVIEWS, utcnow_iso
from ..utils.documents import json_payload

bp = Blueprint("courses_api", __name__)

# managed by the progress endpoints, never by a plain PATCH
READ_ONLY_FIELDS = {"id", "participatedUsers", "progress", "learners", "createdAt"}


def _unique_learners(course: dict) -> int:
    return len({p.get("userId") for p in course.get("participatedUsers", []) if isinstance(p, dict) and p.get("userId")})


@bp.get("/courses")
def list_courses():
    query = {}
    status = request.args.get("status")
    if status:
        query["status"] = status
    return jsonify(get_store()[COURSES].find(query).to_list())


@bp.post("/courses")
def create_course():
    payload = json_payload()
    title = str(payload.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Missing field: title"}), 400

    now = utcnow_iso()
    course = {
        "title": title,
        "description": str(payload.get("description") or ""),
        "category": payload.get("category") or "",
        "level": payload.get("level") or "",
        "duration": payload.get("duration") or "",
        "instructorId": payload.get("instructorId"),
        "image": payload.get("image") or "",
        "skills": payload.get("skills", []),
        "sections": payload.get("sections", []),
        "learners": 0,
        "status": "draft",
        "createdAt": now,
        "updatedAt": now,
    }
    result = get_store()[COURSES].insert_one(course)
    return jsonify(get_store()[COURSES].find_one({"id": result.inserted_id})), 201


@bp.get("/courses/<course_id>")
def get_course(course_id):
    course = get_store()[COURSES].find_one({"id": course_id})
    if not course:
        return jsonify({"error": "Course not found"}), 404
    return jsonify(course)


@bp.patch("/courses/<course_id>")
def update_course(course_id):
    updates = {k: v for k, v in json_payload().items() if k not in READ_ONLY_FIELDS}
    if "status" in updates and updates["status"] not in Config.COURSE_STATUSES:
        return jsonify({"error": f"status must be one of {sorted(Config.COURSE_STATUSES)}"}), 400
    updates["updatedAt"] = utcnow_iso()

    courses = get_store()[COURSES]
    result = courses.update_one({"id": course_id}, {"$set": updates})
    if result.matched_count == 0:
        return jsonify({"error": "Course not found"}), 404
    return jsonify(courses.find_one({"id": course_id}))


@bp.delete("/courses/<course_id>")
def delete_course(course_id):
    result = get_store()[COURSES].delete_one({"id": course_id})
    if result.deleted_count == 0:
        return jsonify({"error": "Course not found"}), 404
    return jsonify({"ok": True, **result.as_dict()})


@bp.post("/courses/<course_id>/status")
def set_course_status(course_id):
    status = json_payload().get("status")
    if status not in Config.COURSE_STATUSES:
        return jsonify({"error": f"status must be one of {sorted(Config.COURSE_STATUSES)}"}), 400
    result = get_store()[COURSES].update_one(
        {"id": course_id},
        {"$set": {"status": status, "updatedAt": utcnow_iso()}},
    )
    if result.matched_count == 0:
        return jsonify({"error": "Course not found"}), 404
    return jsonify({"ok": True, "status": status})


# -----------------------------
# Progress tracking
# -----------------------------
@bp.post("/courses/<course_id>/lessons/<lesson_id>/start")
def start_lesson(course_id, lesson_id):
    user_id = json_payload().get("userId")
    if not user_id:
        return jsonify({"error": "userId is required"}), 400

    store = get_store()
    courses = store[COURSES]
    course = courses.find_one({"id": course_id})
    if not course:
        return jsonify({"error": "Course not found"}), 404

    embedded = any(isinstance(l, dict) and l.get("id") == lesson_id for l in course["lessons"])
    if not embedded and not store[LESSONS].find_one({"id": lesson_id, "courseId": course_id}):
        return jsonify({"error": "Lesson not found in this course"}), 404

    now = utcnow_iso()
    if any(p.get("userId") == user_id for p in course["participatedUsers"] if isinstance(p, dict)):
        courses.update_one(
            {"id": course_id, "participatedUsers.userId": user_id},
            {"$set": {
                "participatedUsers.$.currentLesson": lesson_id,
                "participatedUsers.$.lastAccessedAt": now,
                "participatedUsers.$.lastUpdated": now,
                "updatedAt": now,
            }},
        )
    else:
        courses.update_one(
            {"id": course_id},
            {
                "$push": {"participatedUsers": {
                    "userId": user_id,
                    "currentLesson": lesson_id,
                    "lessonsCompleted": [],
                    "progress": 0,
                    "startedAt": now,
                    "lastAccessedAt": now,
                    "lastUpdated": now,
                }},
                "$set": {"updatedAt": now},
            },
        )
        _sync_learners(course_id)
    return jsonify({"ok": True, "lessonId": lesson_id})


@bp.post("/courses/<course_id>/progress")
def update_progress(course_id):
    payload = json_payload()
    user_id = payload.get("userId")
    progress = payload.get("progress")
    if not user_id or progress is None:
        return jsonify({"error": "userId and progress are required"}), 400
    try:
        progress = max(0.0, min(100.0, float(progress)))
    except (TypeError, ValueError):
        return jsonify({"error": "progress must be a number"}), 400
    if progress.is_integer():
        progress = int(progress)

    courses = get_store()[COURSES]
    course = courses.find_one({"id": course_id})
    if not course:
        return jsonify({"error": "Course not found"}), 404

    now = utcnow_iso()
    completed = progress >= 100
    chapter_id = payload.get("chapterId")
    lesson_id = payload.get("lessonId")

    if any(p.get("userId") == user_id for p in course["participatedUsers"] if isinstance(p, dict)):
        fields = {
            "participatedUsers.$.progress": progress,
            "participatedUsers.$.lastUpdated": now,
            "participatedUsers.$.lastAccessedAt": now,
            "updatedAt": now,
        }
        if completed:
            fields["participatedUsers.$.completedAt"] = now
        if chapter_id:
            fields["participatedUsers.$.currentChapter"] = chapter_id
        if lesson_id:
            fields["participatedUsers.$.currentLesson"] = lesson_id
        result = courses.update_one({"id": course_id, "participatedUsers.userId": user_id}, {"$set": fields})
        if result.matched_count == 0:
            return jsonify({"error": "User not found in course participants"}), 404
    else:
        courses.update_one(
            {"id": course_id},
            {
                "$push": {"participatedUsers": {
                    "userId": user_id,
                    "progress": progress,
                    "startedAt": now,
                    "completedAt": now if completed else None,
                    "lastAccessedAt": now,
                    "currentChapter": chapter_id,
                    "currentLesson": lesson_id,
                }},
                "$set": {"updatedAt": now},
            },
        )
        _sync_learners(course_id)

    return jsonify({"ok": True, "progress": progress, "completed": completed})


def _sync_learners(course_id: str):
    # separate read and write; a concurrent enrolment can be overwritten here
    courses = get_store()[COURSES]
    course = courses.find_one({"id": course_id})
    if course:
        learners = _unique_learners(course)
        courses.update_one({"id": course_id}, {"$set": {"learners": learners}})
        current_app.logger.debug("Course %s now has %d learners", course_id, learners)


# -----------------------------
# Reviews
# -----------------------------
@bp.get("/courses/<course_id>/reviews")
def list_reviews(course_id):
    reviews = get_store()[REVIEWS].find({"courseId": course_id}).to_list()
    return jsonify(sorted(reviews, key=lambda r: r.get("createdAt") or "", reverse=True))


@bp.post("/courses/<course_id>/reviews")
def create_review(course_id):
    payload = json_payload()
    user_id = payload.get("userId")
    rating = payload.get("rating")
    if not user_id:
        return jsonify({"error": "userId is required"}), 400
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        return jsonify({"error": "rating must be an integer between 1 and 5"}), 400

    store = get_store()
    if not store[COURSES].find_one({"id": course_id}):
        return jsonify({"error": "Course not found"}), 404

    reviews = store[REVIEWS]
    if reviews.find_one({"courseId": course_id, "userId": user_id}):
        return jsonify({"error": "Course already reviewed by this user"}), 409

    result = reviews.insert_one({
        "courseId": course_id,
        "userId": user_id,
        "rating": rating,
        "comment": str(payload.get("comment") or "").strip(),
    })
    return jsonify(reviews.find_one({"id": result.inserted_id})), 201
