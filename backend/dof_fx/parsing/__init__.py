"""Text extraction strategies for published rate documents."""

from .dof_rows import RateExtractor, RowPatternExtractor

__all__ = ["RateExtractor", "RowPatternExtractor"]
