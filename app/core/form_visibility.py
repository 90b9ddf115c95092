from __future__ import annotations

from typing import Any

from app.schemas.forms import FormField


def is_visible(field: FormField, earlier: list[FormField], answers: dict[str, Any]) -> bool:
    """
    A field without a conditional is always visible. A conditional field is
    visible iff its parent key belongs to an earlier field and the current
    answer for that key is exactly the stored option.
    """
    cond = field.conditional
    if cond is None:
        return True
    if not any(f.key == cond.field_key for f in earlier):
        return False
    value = answers.get(cond.field_key)
    return isinstance(value, str) and value == cond.option


def prune_hidden_answers(fields: list[FormField], answers: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `answers` without the answers of invisible fields.

    Fields are evaluated in order against the already-pruned map, so a field
    whose parent was itself hidden is hidden too.
    """
    pruned = dict(answers)
    for index, field in enumerate(fields):
        if not is_visible(field, fields[:index], pruned):
            pruned.pop(field.key, None)
    return pruned


def visible_fields(fields: list[FormField], answers: dict[str, Any]) -> list[FormField]:
    pruned = prune_hidden_answers(fields, answers)
    return [f for i, f in enumerate(fields) if is_visible(f, fields[:i], pruned)]


def set_answer(fields: list[FormField], answers: dict[str, Any], key: str, value: Any) -> dict[str, Any]:
    """Record one live answer and drop whatever it made stale."""
    return prune_hidden_answers(fields, {**answers, key: value})
