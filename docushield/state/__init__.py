from .models import (
    CASE_TYPES,
    EXPRESS_ENTRY,
    STUDY,
    VISITOR,
    WORK,
    AuditState,
    CaseType,
    ClassifiedFileSet,
    DocumentRequirement,
    UploadedDocument,
    collect_uploads,
    new_audit_state,
    now_iso,
    resolve_case_type,
)
