from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.forms import get_form_or_404
from app.core.audit import log_event
from app.core.form_analytics import summarize_responses
from app.core.form_editor import load_schema
from app.core.form_visibility import prune_hidden_answers
from app.db.session import get_db
from app.models.form_submission import FormSubmission
from app.schemas.analytics import FormAnalytics
from app.schemas.forms import SubmissionCreate, SubmissionOut

router = APIRouter(prefix="/forms", tags=["form-submissions"])


def submission_out(s: FormSubmission) -> SubmissionOut:
    return SubmissionOut(
        id=str(s.id),
        form_id=str(s.form_id),
        status=s.status,
        answers=s.answers or {},
        created_at=s.created_at,
    )


@router.post("/{form_id}/submissions", response_model=SubmissionOut, status_code=status.HTTP_201_CREATED)
def create_submission(form_id: str, payload: SubmissionCreate, db: Session = Depends(get_db)):
    form = get_form_or_404(db, form_id)
    if not form.is_active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Form is not accepting submissions")

    fields = load_schema(form.form_schema).fields
    known = {f.key for f in fields}

    # unknown keys and answers to hidden fields are never stored
    answers = {k: v for k, v in payload.answers.items() if k in known}
    answers = prune_hidden_answers(fields, answers)

    s = FormSubmission(
        form_id=form.id,
        status=payload.status,
        answers=answers,
        created_at=datetime.utcnow(),
    )
    db.add(s)
    db.flush()

    log_event(
        db=db,
        action="FORM_SUBMISSION_CREATED",
        entity_type="form_submission",
        entity_id=s.id,
        metadata={
            "form_id": str(form.id),
            "answered": len(answers),
            "dropped": len(payload.answers) - len(answers),
        },
    )

    db.commit()
    db.refresh(s)
    return submission_out(s)


@router.get("/{form_id}/responses", response_model=list[SubmissionOut])
def list_responses(
    form_id: str,
    status_filter: str | None = Query(default=None, alias="status", description="Filter by submission status"),
    db: Session = Depends(get_db),
):
    form = get_form_or_404(db, form_id)

    query = db.query(FormSubmission).filter(FormSubmission.form_id == form.id)
    if status_filter:
        query = query.filter(FormSubmission.status == status_filter)

    rows = query.order_by(FormSubmission.created_at.desc()).all()
    return [submission_out(s) for s in rows]


@router.get("/{form_id}/analytics", response_model=FormAnalytics)
def get_form_analytics(form_id: str, db: Session = Depends(get_db)):
    """
    Per-field summaries plus plurality / IRV / Borda results for every
    ranked field, computed over all submissions of the form.
    """
    form = get_form_or_404(db, form_id)

    rows = (
        db.query(FormSubmission)
        .filter(FormSubmission.form_id == form.id)
        .order_by(FormSubmission.created_at.desc())
        .all()
    )
    responses = [{"status": s.status, "answers": s.answers, "created_at": s.created_at} for s in rows]

    return summarize_responses(load_schema(form.form_schema), responses, form_id=str(form.id))
