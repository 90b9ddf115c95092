from app.models.audit_event import AuditEvent
from app.models.form import Form
from app.models.form_submission import FormSubmission

__all__ = ["AuditEvent", "Form", "FormSubmission"]
