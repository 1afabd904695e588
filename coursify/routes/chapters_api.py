from flask import Blueprint, jsonify

from .. import Config
from ..extensions import get_store
from ..storage.schemas import CHAPTERS, LESSONS, utcnow_iso
from ..utils.documents import by_order, json_payload
from ..utils.ids import prefixed_id

bp = Blueprint("chapters_api", __name__)


def _section_error(section) -> str | None:
    if not isinstance(section, dict) or not section.get("type") or not section.get("content"):
        return "Each section must have type and content"
    if section["type"] not in Config.SECTION_TYPES:
        return f"Invalid section type: {section['type']}. Valid types are: {', '.join(sorted(Config.SECTION_TYPES))}"
    return None


@bp.get("/lessons/<lesson_id>/chapters")
def list_chapters(lesson_id):
    return jsonify(by_order(get_store()[CHAPTERS].find({"lessonId": lesson_id}).to_list()))


@bp.post("/lessons/<lesson_id>/chapters")
def create_chapter(lesson_id):
    payload = json_payload()
    title = str(payload.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Missing field: title"}), 400

    sections = payload.get("sections") or []
    if not isinstance(sections, list):
        return jsonify({"error": "sections must be a list"}), 400
    for section in sections:
        err = _section_error(section)
        if err:
            return jsonify({"error": err}), 400

    store = get_store()
    if not store[LESSONS].find_one({"id": lesson_id}):
        return jsonify({"error": "Lesson not found"}), 404

    now = utcnow_iso()
    sections = [
        {
            **s,
            "id": s.get("id") or prefixed_id("section"),
            "order": s["order"] if isinstance(s.get("order"), int) else i + 1,
            "createdAt": s.get("createdAt") or now,
        }
        for i, s in enumerate(sections)
    ]
    chapters = store[CHAPTERS]
    result = chapters.insert_one({
        "lessonId": lesson_id,
        "title": title,
        "description": str(payload.get("description") or ""),
        "order": payload.get("order") if isinstance(payload.get("order"), int) else 0,
        "duration": payload.get("duration") or "0 min",
        "isPublished": bool(payload.get("isPublished", False)),
        "sections": sections,
    })
    return jsonify(chapters.find_one({"id": result.inserted_id})), 201


@bp.get("/chapters/<chapter_id>")
def get_chapter(chapter_id):
    chapter = get_store()[CHAPTERS].find_one({"id": chapter_id})
    if not chapter:
        return jsonify({"error": "Chapter not found"}), 404
    return jsonify(chapter)


@bp.patch("/chapters/<chapter_id>")
def update_chapter(chapter_id):
    updates = {k: v for k, v in json_payload().items() if k not in {"id", "lessonId", "createdAt"}}
    if "isPublished" in updates and not isinstance(updates["isPublished"], bool):
        return jsonify({"error": "isPublished must be a boolean"}), 400

    chapters = get_store()[CHAPTERS]
    result = chapters.update_one({"id": chapter_id}, {"$set": updates})
    if result.matched_count == 0:
        return jsonify({"error": "Chapter not found"}), 404
    return jsonify(chapters.find_one({"id": chapter_id}))


@bp.delete("/chapters/<chapter_id>")
def delete_chapter(chapter_id):
    result = get_store()[CHAPTERS].delete_one({"id": chapter_id})
    if result.deleted_count == 0:
        return jsonify({"error": "Chapter not found"}), 404
    return jsonify({"ok": True, **result.as_dict()})


# -----------------------------
# Sections (embedded in the chapter document)
# -----------------------------
@bp.post("/chapters/<chapter_id>/sections")
def add_section(chapter_id):
    payload = json_payload()
    err = _section_error(payload)
    if err:
        return jsonify({"error": err}), 400

    chapters = get_store()[CHAPTERS]
    chapter = chapters.find_one({"id": chapter_id})
    if not chapter:
        return jsonify({"error": "Chapter not found"}), 404

    order = payload.get("order")
    section = {
        "id": prefixed_id("section"),
        "type": payload["type"],
        "content": payload["content"],
        "order": order if isinstance(order, int) else len(chapter["sections"]) + 1,
        "createdAt": utcnow_iso(),
    }
    chapters.update_one({"id": chapter_id}, {"$push": {"sections": section}})
    return jsonify({"ok": True, "section": section}), 201


@bp.patch("/chapters/<chapter_id>/sections/<section_id>")
def update_section(chapter_id, section_id):
    payload = json_payload()
    if "type" in payload and payload["type"] not in Config.SECTION_TYPES:
        return jsonify({"error": f"Invalid section type: {payload['type']}"}), 400

    fields = {f"sections.$.{k}": payload[k] for k in ("type", "content", "order") if k in payload}
    fields["sections.$.updatedAt"] = utcnow_iso()

    result = get_store()[CHAPTERS].update_one(
        {"id": chapter_id, "sections.id": section_id},
        {"$set": fields},
    )
    if result.matched_count == 0:
        return jsonify({"error": "Section not found"}), 404
    return jsonify({"ok": True})


@bp.delete("/chapters/<chapter_id>/sections/<section_id>")
def delete_section(chapter_id, section_id):
    result = get_store()[CHAPTERS].update_one(
        {"id": chapter_id},
        {"$pull": {"sections": {"id": section_id}}},
    )
    if result.matched_count == 0:
        return jsonify({"error": "Chapter not found"}), 404
    return jsonify({"ok": True})
