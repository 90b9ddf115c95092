import random
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.form_editor import FieldListEditor
from app.core.form_validation import normalize, validate
from app.db.session import SessionLocal
from app.models.form import Form
from app.models.form_submission import FormSubmission
from app.schemas.forms import FieldConditional, FormMeta, FormSchema

CANDIDATES = ["Ada Lovelace", "Grace Hopper", "Alan Turing", "Edsger Dijkstra"]


def build_election_fields():
    editor = FieldListEditor()

    editor.add_field()
    editor.update_field(0, label="Full name", required=True, min_count=2, max_count=120)

    editor.add_field()
    editor.update_field(1, label="Student email", type="email", required=True, is_student_email=True)

    editor.add_field()
    editor.update_field(2, label="Membership", type="select", options=["Member", "Guest"], required=True)

    editor.add_field()
    editor.update_field(
        3,
        label="Member number",
        conditional=FieldConditional(field_key="membership", option="Member"),
    )

    editor.add_field()
    editor.update_field(4, label="Chair", type="multi_select", options=list(CANDIDATES), is_ranked=True)

    editor.add_field()
    editor.update_field(
        5,
        label="How was the election night?",
        key="satisfaction",
        type="rating",
        scale_type="stars",
        min_label="Poor",
        max_label="Great",
    )

    return editor.fields


def get_or_create_form(db: Session, meta: FormMeta) -> Form:
    form = db.query(Form).filter(Form.slug == meta.slug).one_or_none()
    if form:
        return form

    fields = build_election_fields()
    error = validate(meta, fields)
    if error:
        raise SystemExit(f"Demo form is invalid: {error}")

    form = Form(
        title=meta.title,
        slug=meta.slug,
        is_active=meta.is_active,
        form_schema=FormSchema(fields=normalize(fields)).model_dump(mode="json"),
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def seed_ballots(db: Session, form: Form, count: int, rng: random.Random) -> int:
    existing = db.query(FormSubmission).filter(FormSubmission.form_id == form.id).count()
    if existing:
        return 0

    now = datetime.utcnow()
    for i in range(count):
        is_member = rng.random() < 0.7
        ranking = rng.sample(CANDIDATES, k=rng.randint(1, len(CANDIDATES)))
        answers = {
            "full-name": f"Voter {i + 1}",
            "student-email": f"voter{i + 1}@students.example.edu",
            "membership": "Member" if is_member else "Guest",
            "chair": ranking,
            "satisfaction": rng.randint(1, 5),
        }
        if is_member:
            answers["member-number"] = f"M-{1000 + i}"

        db.add(
            FormSubmission(
                form_id=form.id,
                status="submitted",
                answers=answers,
                created_at=now - timedelta(minutes=count - i),
            )
        )
    db.commit()
    return count


def main():
    db = SessionLocal()
    rng = random.Random(2026)
    try:
        meta = FormMeta(title="Officer Election 2026", slug="officer-election-2026", is_active=True)
        form = get_or_create_form(db, meta)
        created = seed_ballots(db, form, count=40, rng=rng)

        print("\n=== Demo Seed Complete ===")
        print(f"  form_id: {form.id}")
        print(f"  slug:    {form.slug}")
        print(f"  ballots: {created} new")
        print("\nTry:")
        print(f"  GET  /forms/{form.id}/analytics")
        print(f"  POST /forms/{form.id}/visibility  {{\"answers\": {{\"membership\": \"Guest\"}}}}")
        print()
    finally:
        db.close()


if __name__ == "__main__":
    main()
