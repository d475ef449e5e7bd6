from reportsync.schemas.common import ApiResponse
from reportsync.schemas.report import (
    GenerateRequest,
    ReportConfig,
    ReportConfigUpdate,
    RunLogResponse,
    UrlPair,
)

__all__ = [
    "ApiResponse",
    "GenerateRequest",
    "ReportConfig",
    "ReportConfigUpdate",
    "RunLogResponse",
    "UrlPair",
]
