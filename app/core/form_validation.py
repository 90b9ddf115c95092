from __future__ import annotations

import logging
import math
from typing import Any

from app.schemas.forms import CHOICE_TYPES, FieldConditional, FormField

logger = logging.getLogger(__name__)


def _trimmed_options(field: FormField) -> list[str]:
    return [o.strip() for o in (field.options or []) if o and o.strip()]


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _conditional_problem(field: FormField, index: int, fields: list[FormField]) -> str | None:
    """
    Returns None when `field.conditional` is sound against `fields`, else a
    short code: "missing_parent", "parent_not_select" or "missing_option".

    The parent is looked up among the fields strictly before `index`, so a
    parent that was moved below its dependent counts as missing.
    """
    cond = field.conditional
    if cond is None:
        return None

    parent_key = cond.field_key.strip()
    parent = next((f for f in fields[:index] if f.key.strip() == parent_key), None)
    if parent is None:
        return "missing_parent"
    if parent.type != "select":
        return "parent_not_select"
    if cond.option.strip() not in _trimmed_options(parent):
        return "missing_option"
    return None


_CONDITIONAL_MESSAGES = {
    "missing_parent": 'Field "{label}" depends on a field that does not appear before it.',
    "parent_not_select": 'Field "{label}" can only depend on a select field.',
    "missing_option": 'Field "{label}" depends on an option that no longer exists.',
}


def _validate_text(field: FormField) -> str | None:
    mn = field.min_count
    mx = field.max_count
    if mn is not None and mn < 0:
        return "Text min_count must be 0 or greater."
    if mx is not None and mx < 0:
        return "Text max_count must be 0 or greater."
    if mn is not None and mx is not None and mn > mx:
        return "Text min_count cannot exceed max_count."
    return None


def _validate_rating(field: FormField) -> str | None:
    if not (_is_finite_number(field.scale_min) and _is_finite_number(field.scale_max)):
        return "Rating fields must have a numeric scale minimum and maximum."
    if field.scale_min >= field.scale_max:
        return "Rating scale minimum must be less than the maximum."
    if not field.scale_type:
        return "Rating fields must have a scale type."
    return None


def validate(meta, fields: list[FormField]) -> str | None:
    """
    Decide whether a form (meta + in-progress fields) is save-worthy.

    Returns the message for the first violation found, walking the form
    meta first and then the fields in order, or None when the form can be
    saved. `meta` is anything with `title` and `slug` attributes.
    """
    if not (meta.title or "").strip():
        return "Form title is required."
    if not (meta.slug or "").strip():
        return "Slug is required."
    if not fields:
        return "Add at least one field to the form."

    seen_keys: set[str] = set()
    for index, field in enumerate(fields):
        if not field.label.strip():
            return "Every field must have a label."
        key = field.key.strip()
        if not key:
            return "Every field must have a key."
        if key in seen_keys:
            return f"Duplicate field key: {key}"
        seen_keys.add(key)

        if field.type in CHOICE_TYPES and not _trimmed_options(field):
            return "Select and multi-select fields must have at least one option."

        if field.type == "text":
            error = _validate_text(field)
            if error:
                return error

        if field.type == "rating":
            error = _validate_rating(field)
            if error:
                return error

        problem = _conditional_problem(field, index, fields)
        if problem:
            return _CONDITIONAL_MESSAGES[problem].format(label=field.label.strip())

    return None


def repair_conditionals(fields: list[FormField]) -> list[str]:
    """
    Drop, in place, every conditional that no longer holds (parent deleted,
    moved after its dependent, no longer a select, or lost the option).
    Returns the keys of the fields that were repaired.
    """
    repaired: list[str] = []
    for index, field in enumerate(fields):
        problem = _conditional_problem(field, index, fields)
        if problem:
            logger.debug("Clearing conditional on field %r (%s)", field.key, problem)
            field.conditional = None
            repaired.append(field.key)
    return repaired


def _clean_label(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _normalize_one(field: FormField, position: int) -> FormField:
    ftype = field.type
    is_choice = ftype in CHOICE_TYPES
    is_rating = ftype == "rating"
    is_numeric_rating = is_rating and field.scale_type == "numeric"

    conditional = None
    if field.conditional is not None:
        conditional = FieldConditional(
            field_key=field.conditional.field_key.strip(),
            option=field.conditional.option.strip(),
        )

    return FormField(
        id=field.id,
        type=ftype,
        label=field.label.strip(),
        key=field.key.strip(),
        required=field.required,
        order=position,
        min_count=field.min_count if ftype == "text" else None,
        max_count=field.max_count if ftype == "text" else None,
        options=_trimmed_options(field) if is_choice else None,
        is_ranked=bool(field.is_ranked) if ftype == "multi_select" else None,
        scale_min=field.scale_min if is_rating else None,
        scale_max=field.scale_max if is_rating else None,
        scale_type=field.scale_type if is_rating else None,
        allow_float=bool(field.allow_float) if is_numeric_rating else None,
        min_label=_clean_label(field.min_label) if is_rating else None,
        max_label=_clean_label(field.max_label) if is_rating else None,
        is_student_email=bool(field.is_student_email) if ftype == "email" else None,
        conditional=conditional,
    )


def normalize(fields: list[FormField]) -> list[FormField]:
    """
    Clean a field list for persistence. The input is not modified.

    Conditionals are re-checked against the cleaned list (trimmed keys and
    options, current positions) and silently dropped when they no longer hold.
    """
    cleaned = [_normalize_one(f, i) for i, f in enumerate(fields, start=1)]
    repair_conditionals(cleaned)
    return cleaned
