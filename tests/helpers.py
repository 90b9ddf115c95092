from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.models.form import Form
from app.models.form_submission import FormSubmission


def field(key: str, type: str = "text", **attrs) -> dict:
    """Raw field dict as an editor would send it."""
    out = {"key": key, "label": attrs.pop("label", key.replace("-", " ").title()), "type": type}
    out.update(attrs)
    return out


def form_payload(*fields: dict, title: str = "Event Registration", slug: str = "event-registration", **meta) -> dict:
    return {"title": title, "slug": slug, **meta, "schema": {"fields": list(fields)}}


def create_form(
    db: Session,
    *,
    fields: list[dict],
    title: str = "Test Form",
    slug: str = "test-form",
    is_active: bool = True,
) -> Form:
    """Stores `fields` as-is (assumed already normalized), with order from position."""
    stored = [{**f, "order": i} for i, f in enumerate(fields, start=1)]
    form = Form(
        title=title,
        slug=slug,
        is_active=is_active,
        form_schema={"fields": stored},
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def add_submission(db: Session, form: Form, answers: dict, *, status: str = "submitted", minutes_ago: int = 0) -> FormSubmission:
    s = FormSubmission(
        form_id=form.id,
        status=status,
        answers=answers,
        created_at=datetime.utcnow() - timedelta(minutes=minutes_ago),
    )
    db.add(s)
    db.commit()
    db.refresh(s)
    return s
