"""
Per-collection shape repair.

Collection files carry no schema, so documents written before a field existed
(or written with the wrong type) are repaired lazily whenever they pass through
the store, on read and on write.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Tuple

from ..utils.ids import nanoid, prefixed_id

USERS = "users"
COURSES = "courses"
LESSONS = "lessons"
CHAPTERS = "chapters"
QUIZZES = "quizzes"
REVIEWS = "reviews"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class CollectionSchema:
    name: str
    list_fields: Tuple[str, ...] = ()
    number_fields: Tuple[str, ...] = ()
    defaults: Dict[str, Any] = field(default_factory=dict)
    id_factory: Callable[[], str] | None = None
    stamp_created: bool = False
    touch_updated: bool = False

    def new_id(self) -> str:
        if self.id_factory is not None:
            return self.id_factory()
        return prefixed_id(self.name[:-1] if self.name.endswith("s") else self.name)

    def normalize(self, document: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(document)
        for name in self.list_fields:
            if not isinstance(doc.get(name), list):
                doc[name] = []
        for name in self.number_fields:
            if not is_number(doc.get(name)):
                doc[name] = 0
        for name, value in self.defaults.items():
            if doc.get(name) is None:
                doc[name] = value
        return doc

    def is_list_field(self, name: str) -> bool:
        return name in self.list_fields

    def is_number_field(self, name: str) -> bool:
        return name in self.number_fields


SCHEMAS: Dict[str, CollectionSchema] = {
    USERS: CollectionSchema(
        USERS,
        defaults={"role": "Student", "status": "Pending"},
        id_factory=nanoid,
    ),
    COURSES: CollectionSchema(
        COURSES,
        list_fields=("skills", "participatedUsers", "lessons"),
        number_fields=("progress",),
        id_factory=lambda: prefixed_id("course"),
    ),
    LESSONS: CollectionSchema(
        LESSONS,
        list_fields=("chapters", "quizzes"),
        defaults={"status": "DRAFT"},
        id_factory=lambda: prefixed_id("lesson"),
        stamp_created=True,
        touch_updated=True,
    ),
    CHAPTERS: CollectionSchema(
        CHAPTERS,
        list_fields=("sections",),
        id_factory=lambda: prefixed_id("chapter"),
        stamp_created=True,
        touch_updated=True,
    ),
    QUIZZES: CollectionSchema(
        QUIZZES,
        list_fields=("questions", "evaluations"),
        id_factory=lambda: prefixed_id("quiz"),
        stamp_created=True,
        touch_updated=True,
    ),
    REVIEWS: CollectionSchema(
        REVIEWS,
        id_factory=lambda: prefixed_id("review"),
        stamp_created=True,
        touch_updated=True,
    ),
}


def get_schema(collection: str) -> CollectionSchema:
    """Schema for a collection; unknown collections get one that repairs nothing."""
    return SCHEMAS.get(collection) or CollectionSchema(collection)
