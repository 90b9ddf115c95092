from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime
from typing import Any, Iterable, Mapping

from app.core.elections import clean_ballots, tally_election
from app.schemas.analytics import (
    ElectionResult,
    FieldSummary,
    FormAnalytics,
    OptionCount,
    RankCount,
    RatingCount,
)
from app.schemas.forms import FormField, FormSchema

logger = logging.getLogger(__name__)


def _field_values(field: FormField, answer_maps: Iterable[Mapping[str, Any]]) -> list[Any]:
    """Every supplied (present, non-null) answer for the field's key."""
    values = []
    for answers in answer_maps:
        if not isinstance(answers, Mapping):
            continue
        value = answers.get(field.key)
        if value is not None:
            values.append(value)
    return values


def _known_options(field: FormField, values: list[Any]) -> list[str]:
    """Schema options first, then any retired option still present in answers."""
    observed = []
    for value in values:
        items = value if isinstance(value, list) else [value]
        observed.extend(v for v in items if isinstance(v, str) and v)
    return list(dict.fromkeys([*(field.options or []), *observed]))


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _summarize_select(field: FormField, values: list[Any]) -> FieldSummary:
    options = _known_options(field, values)
    counts = [OptionCount(option=o, count=sum(1 for v in values if v == o)) for o in options]
    return FieldSummary(field_key=field.key, label=field.label, type="select", total=len(values), counts=counts)


def _summarize_multi_select(field: FormField, values: list[Any]) -> FieldSummary:
    options = _known_options(field, values)
    counts = [
        OptionCount(option=o, count=sum(1 for v in values if isinstance(v, list) and o in v))
        for o in options
    ]
    return FieldSummary(field_key=field.key, label=field.label, type="multi_select", total=len(values), counts=counts)


def _summarize_ranked(field: FormField, values: list[Any]) -> FieldSummary:
    options = _known_options(field, values)
    max_rank = max([1, *(len(v) for v in values if isinstance(v, list))])

    table = {o: [0] * max_rank for o in options}
    for value in values:
        if not isinstance(value, list):
            continue
        for position, option in enumerate(value):
            if isinstance(option, str) and option in table:
                table[option][position] += 1

    return FieldSummary(
        field_key=field.key,
        label=field.label,
        type="ranked",
        total=len(values),
        rank_counts=[RankCount(option=o, ranks=ranks) for o, ranks in table.items()],
        max_rank=max_rank,
    )


def _summarize_boolean(field: FormField, values: list[Any]) -> FieldSummary:
    counts = [
        OptionCount(option="True", count=sum(1 for v in values if v is True)),
        OptionCount(option="False", count=sum(1 for v in values if v is False)),
    ]
    return FieldSummary(field_key=field.key, label=field.label, type="boolean", total=len(values), counts=counts)


def _summarize_rating(field: FormField, values: list[Any]) -> FieldSummary:
    numbers = [n for n in (_to_number(v) for v in values) if n is not None]
    if len(numbers) != len(values):
        logger.debug("Ignored %d non-numeric rating answers for %r", len(values) - len(numbers), field.key)

    tally = Counter(numbers)
    return FieldSummary(
        field_key=field.key,
        label=field.label,
        type="rating",
        total=len(numbers),
        rating_counts=[RatingCount(value=v, count=tally[v]) for v in sorted(tally)],
        average=(sum(numbers) / len(numbers)) if numbers else None,
        min=min(numbers) if numbers else None,
        max=max(numbers) if numbers else None,
    )


def summarize_field(field: FormField, answer_maps: list[Mapping[str, Any]]) -> FieldSummary:
    values = _field_values(field, answer_maps)

    if field.type == "select":
        return _summarize_select(field, values)
    if field.type == "multi_select":
        if field.is_ranked:
            return _summarize_ranked(field, values)
        return _summarize_multi_select(field, values)
    if field.type == "boolean":
        return _summarize_boolean(field, values)
    if field.type == "rating":
        return _summarize_rating(field, values)

    # text / email: no text analytics, just how many answered
    return FieldSummary(field_key=field.key, label=field.label, type="text", total=len(values))


def aggregate(schema: FormSchema, answer_maps: list[Mapping[str, Any]]) -> list[FieldSummary]:
    fields = sorted(schema.fields, key=lambda f: f.order if f.order is not None else 0)
    return [summarize_field(f, answer_maps) for f in fields]


def ranked_elections(schema: FormSchema, answer_maps: list[Mapping[str, Any]]) -> list[ElectionResult]:
    """
    Tally every ranked multi-select field. Ballots only carry options the
    schema still offers; a field with no declared options falls back to the
    options seen in answers.
    """
    results = []
    for field in sorted(schema.fields, key=lambda f: f.order if f.order is not None else 0):
        if field.type != "multi_select" or not field.is_ranked:
            continue
        values = _field_values(field, answer_maps)
        options = list(field.options or []) or _known_options(field, values)
        ballots = clean_ballots(options, values)
        results.append(tally_election(field.key, field.label, options, ballots))
    return results


def summarize_responses(
    schema: FormSchema,
    responses: list[Mapping[str, Any]],
    *,
    form_id: str | None = None,
) -> FormAnalytics:
    """
    responses: [{"status": str, "answers": {...}, "created_at": datetime}, ...]
    """
    answer_maps = [r.get("answers") or {} for r in responses]
    status_counts = Counter(r.get("status") for r in responses if r.get("status"))
    created: list[datetime] = [r["created_at"] for r in responses if r.get("created_at") is not None]

    return FormAnalytics(
        form_id=form_id,
        total_responses=len(responses),
        latest_response_at=max(created) if created else None,
        status_counts=dict(status_counts),
        fields=aggregate(schema, answer_maps),
        elections=ranked_elections(schema, answer_maps),
    )
