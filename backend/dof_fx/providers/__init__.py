"""Upstream rate sources."""

from .banxico import BanxicoClient, SecondaryRateSource
from .dof import DOFDocumentFetcher

__all__ = ["BanxicoClient", "DOFDocumentFetcher", "SecondaryRateSource"]
