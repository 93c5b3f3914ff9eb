"""Persistence boundary for rate history and FX operations."""

from .store import (
    AppendResult,
    OperationFilter,
    OperationPage,
    RateStore,
    SqlRateStore,
    operation_hash,
    record_hash,
)

__all__ = [
    "AppendResult",
    "OperationFilter",
    "OperationPage",
    "RateStore",
    "SqlRateStore",
    "operation_hash",
    "record_hash",
]
