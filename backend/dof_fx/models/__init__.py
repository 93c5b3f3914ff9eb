"""Database model exports."""

from .operations import FxOperationRow
from .rates import RateRecordRow

__all__ = ["FxOperationRow", "RateRecordRow"]
