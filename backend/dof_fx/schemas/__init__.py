"""Pydantic schema exports."""

from .operations import (
    OperationCreateRequest,
    OperationListResponse,
    OperationSchema,
    RateInputSchema,
    ResolvedRateSchema,
)
from .rates import (
    AveragesResponse,
    MonthlyAverageSchema,
    RateLookupResponse,
    RateRegisterRequest,
    RateRegisterResponse,
    WeeklyAverageSchema,
)

__all__ = [
    "AveragesResponse",
    "MonthlyAverageSchema",
    "OperationCreateRequest",
    "OperationListResponse",
    "OperationSchema",
    "RateInputSchema",
    "RateLookupResponse",
    "RateRegisterRequest",
    "RateRegisterResponse",
    "ResolvedRateSchema",
    "WeeklyAverageSchema",
]
