from .models import (
    AuditCheckModel,
    AuditIssueModel,
    AuditResultModel,
    CheckStatus,
    CitationModel,
    ExpressEntryResponseModel,
    ReadinessBreakdownModel,
    ReadinessScoreModel,
    RiskLevel,
    StudyResponseModel,
    VisitorResponseModel,
    WorkResponseModel,
)
