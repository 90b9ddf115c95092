import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Form(Base):
    __tablename__ = "forms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # at most one registration form per event
    event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, unique=True, nullable=True)

    # {"fields": [...]} as written by normalize(); always replaced whole
    form_schema: Mapped[dict] = mapped_column(
        "schema",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=lambda: {"fields": []},
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    submissions = relationship(
        "FormSubmission",
        back_populates="form",
        cascade="all, delete-orphan",
    )
