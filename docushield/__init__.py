from .pipeline import AuditOutcome, run_audit
