from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from app.core.form_validation import repair_conditionals
from app.schemas.forms import CHOICE_TYPES, FormField, FormSchema, new_field_id

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_RATING_ATTRS = ("scale_min", "scale_max", "scale_type", "allow_float", "min_label", "max_label")


def slugify(value: str) -> str:
    """'Full Name (legal)' -> 'full-name-legal'"""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def new_field() -> FormField:
    return FormField(
        id=new_field_id(),
        type="text",
        label="",
        key="",
        required=False,
        options=[],
        is_ranked=False,
        min_count=None,
        max_count=None,
    )


def load_schema(raw: Any) -> FormSchema:
    """
    Read a persisted schema leniently: missing ids are assigned, `required`
    is coerced to a bool and fields are sorted by `order` (missing order
    sorts first). Entries that cannot be read as a field are skipped.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("fields"), list):
        return FormSchema(fields=[])

    fields: list[FormField] = []
    for item in raw["fields"]:
        if not isinstance(item, dict):
            continue
        data = dict(item)
        if not data.get("id"):
            data["id"] = new_field_id()
        try:
            fields.append(FormField.model_validate(data))
        except ValidationError as e:
            logger.warning("Skipping unreadable field %r: %s", data.get("key"), e.errors())

    fields.sort(key=lambda f: f.order if f.order is not None else 0)
    return FormSchema(fields=fields)


def _type_change_updates(field: FormField, new_type: str) -> dict[str, Any]:
    updates: dict[str, Any] = {
        "options": (field.options or []) if new_type in CHOICE_TYPES else [],
        "is_ranked": bool(field.is_ranked) if new_type == "multi_select" else False,
        "min_count": field.min_count if new_type == "text" else None,
        "max_count": field.max_count if new_type == "text" else None,
        "is_student_email": bool(field.is_student_email) if new_type == "email" else None,
    }
    if new_type == "rating":
        updates.update(
            scale_min=field.scale_min if field.scale_min is not None else 1,
            scale_max=field.scale_max if field.scale_max is not None else 5,
            scale_type=field.scale_type or "numeric",
            allow_float=bool(field.allow_float),
        )
    else:
        updates.update({attr: None for attr in _RATING_ATTRS})
    return updates


class FieldListEditor:
    """
    Ordered, editable list of field definitions.

    Every operation re-checks conditionals across the whole list afterwards,
    so the list is always consistent once a call returns.
    """

    def __init__(self, fields: list[FormField] | None = None):
        self.fields: list[FormField] = [f.model_copy(deep=True) for f in (fields or [])]

    def add_field(self) -> FormField:
        field = new_field()
        self.fields.append(field)
        return field

    def insert_field_after(self, index: int) -> FormField:
        field = new_field()
        self.fields.insert(index + 1, field)
        return field

    def update_field(self, index: int, **changes: Any) -> FormField:
        current = self.fields[index]

        # key follows the label until the user sets one
        if "label" in changes and "key" not in changes and not current.key:
            changes["key"] = slugify(changes["label"] or "")

        new_type = changes.get("type")
        if new_type is not None and new_type != current.type:
            for attr, value in _type_change_updates(current, new_type).items():
                changes.setdefault(attr, value)

        updated = FormField.model_validate({**current.model_dump(), **changes})
        self.fields[index] = updated
        self._repair()
        return updated

    def remove_field(self, index: int) -> None:
        del self.fields[index]
        self._repair()

    def move_field(self, from_index: int, to_index: int) -> None:
        if to_index < 0 or to_index >= len(self.fields):
            return
        moved = self.fields.pop(from_index)
        self.fields.insert(to_index, moved)
        self._repair()

    def move_up(self, index: int) -> None:
        self.move_field(index, index - 1)

    def move_down(self, index: int) -> None:
        self.move_field(index, index + 1)

    def _repair(self) -> None:
        repair_conditionals(self.fields)


def snapshot(meta, fields: list[FormField]) -> str:
    """
    Canonical JSON of a form's meta + fields, with `order` taken from list
    position. Two forms are "the same edit" iff their snapshots are equal.
    """
    event_id = getattr(meta, "event_id", None)
    payload = {
        "meta": {
            "title": meta.title,
            "slug": meta.slug,
            "is_active": meta.is_active,
            "event_id": str(event_id) if event_id else None,
        },
        "fields": [
            {**f.model_dump(mode="json"), "order": i}
            for i, f in enumerate(fields, start=1)
        ],
    }
    return json.dumps(payload, sort_keys=True)
