"""Domain layer: constants, errors and schemas."""

from .errors import ErrorCodes, ServiceError
from .schemas import (
    InterviewConfig,
    Report,
    User,
    report_from_row,
    report_to_row,
    user_from_rows,
)

__all__ = [
    "ErrorCodes",
    "ServiceError",
    "InterviewConfig",
    "Report",
    "User",
    "report_from_row",
    "report_to_row",
    "user_from_rows",
]
