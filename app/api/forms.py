import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import log_event
from app.core.form_editor import load_schema, slugify, snapshot
from app.core.form_validation import normalize, validate
from app.core.form_visibility import prune_hidden_answers, visible_fields
from app.db.session import get_db
from app.models.form import Form
from app.schemas.forms import (
    FormMeta,
    FormOut,
    FormSchema,
    FormUpsert,
    FormValidationOut,
    VisibilityOut,
    VisibilityRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])


def form_out(form: Form) -> FormOut:
    return FormOut(
        id=str(form.id),
        title=form.title,
        slug=form.slug,
        is_active=form.is_active,
        event_id=str(form.event_id) if form.event_id else None,
        form_schema=load_schema(form.form_schema),
        created_at=form.created_at,
        updated_at=form.updated_at,
    )


def get_form_or_404(db: Session, form_id: str) -> Form:
    try:
        pk = uuid.UUID(form_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Form not found")

    form = db.get(Form, pk)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _validated_fields_or_400(payload: FormUpsert):
    error = validate(payload, payload.form_schema.fields)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"message": error})
    return normalize(payload.form_schema.fields)


def _assert_unique_or_409(db: Session, payload: FormUpsert, exclude_id: uuid.UUID | None = None) -> None:
    q = db.query(Form.id).filter(Form.slug == payload.slug.strip())
    if exclude_id is not None:
        q = q.filter(Form.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="Slug already in use")

    if payload.event_id is not None:
        q = db.query(Form.id).filter(Form.event_id == payload.event_id)
        if exclude_id is not None:
            q = q.filter(Form.id != exclude_id)
        if q.first():
            raise HTTPException(status_code=409, detail="Event already linked to another form")


@router.get("", response_model=list[FormOut])
def list_forms(
    search: str | None = Query(default=None, description="Search by title or slug"),
    is_active: bool | None = Query(default=None, description="Filter by active status"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    query = db.query(Form)

    if search:
        search_term = f"%{search.lower()}%"
        query = query.filter(or_(Form.title.ilike(search_term), Form.slug.ilike(search_term)))

    if is_active is not None:
        query = query.filter(Form.is_active == is_active)

    rows = query.order_by(Form.created_at.desc()).offset(offset).limit(limit).all()
    return [form_out(f) for f in rows]


@router.post("/validate", response_model=FormValidationOut)
def validate_form(payload: FormUpsert):
    """
    Dry run of the save path: returns the first violation (or none) and the
    normalized fields that would be stored.
    """
    error = validate(payload, payload.form_schema.fields)
    return FormValidationOut(
        valid=error is None,
        error=error,
        fields=normalize(payload.form_schema.fields),
    )


@router.get("/{form_id}", response_model=FormOut)
def get_form(form_id: str, db: Session = Depends(get_db)):
    return form_out(get_form_or_404(db, form_id))


@router.post("", response_model=FormOut, status_code=status.HTTP_201_CREATED)
def create_form(payload: FormUpsert, db: Session = Depends(get_db)):
    if not payload.slug.strip():
        payload.slug = slugify(payload.title)

    fields = _validated_fields_or_400(payload)
    _assert_unique_or_409(db, payload)

    form = Form(
        title=payload.title.strip(),
        slug=payload.slug.strip(),
        is_active=payload.is_active,
        event_id=payload.event_id,
        form_schema=FormSchema(fields=fields).model_dump(mode="json"),
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    db.add(form)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Slug or event already in use")

    log_event(
        db=db,
        action="FORM_CREATED",
        entity_type="form",
        entity_id=form.id,
        metadata={"slug": form.slug, "field_count": len(fields)},
    )

    db.commit()
    db.refresh(form)
    return form_out(form)


@router.put("/{form_id}", response_model=FormOut)
def replace_form(form_id: str, payload: FormUpsert, db: Session = Depends(get_db)):
    """Replace meta and the complete schema; there is no partial update."""
    form = get_form_or_404(db, form_id)

    fields = _validated_fields_or_400(payload)

    before = snapshot(form, load_schema(form.form_schema).fields)
    new_meta = FormMeta(
        title=payload.title.strip(),
        slug=payload.slug.strip(),
        is_active=payload.is_active,
        event_id=payload.event_id,
    )
    if snapshot(new_meta, fields) == before:
        logger.debug("Form %s unchanged, nothing to save", form.id)
        return form_out(form)

    _assert_unique_or_409(db, payload, exclude_id=form.id)

    form.title = new_meta.title
    form.slug = new_meta.slug
    form.is_active = new_meta.is_active
    form.event_id = new_meta.event_id
    form.form_schema = FormSchema(fields=fields).model_dump(mode="json")
    form.updated_at = datetime.utcnow()

    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Slug or event already in use")

    log_event(
        db=db,
        action="FORM_UPDATED",
        entity_type="form",
        entity_id=form.id,
        metadata={"slug": form.slug, "field_count": len(fields)},
    )

    db.commit()
    db.refresh(form)
    return form_out(form)


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_form(form_id: str, db: Session = Depends(get_db)):
    form = get_form_or_404(db, form_id)

    log_event(
        db=db,
        action="FORM_DELETED",
        entity_type="form",
        entity_id=form.id,
        metadata={"slug": form.slug},
    )
    db.delete(form)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{form_id}/visibility", response_model=VisibilityOut)
def preview_visibility(form_id: str, payload: VisibilityRequest, db: Session = Depends(get_db)):
    """Which fields a respondent currently sees, given their answers so far."""
    form = get_form_or_404(db, form_id)
    fields = load_schema(form.form_schema).fields

    return VisibilityOut(
        visible_keys=[f.key for f in visible_fields(fields, payload.answers)],
        answers=prune_hidden_answers(fields, payload.answers),
    )
