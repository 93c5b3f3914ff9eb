"""Client for the DOF monthly exchange-rate history page."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from dof_fx.config import AppSettings
from dof_fx.errors import FetchError

logger = logging.getLogger(__name__)

# The DOF serves its indicator pages in ISO-8859-1 regardless of headers.
DOF_ENCODING = "latin-1"
DOF_RATE_INDICATOR = 1
DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def build_params(year: int, month: int) -> dict[str, int]:
    return {"cod_tipo": DOF_RATE_INDICATOR, "year": year, "month": month}


class DOFDocumentFetcher:
    """Download the raw monthly history from one of several mirrors.

    A single call targets a single URL; choosing the next mirror and retrying
    belong to the resolver.
    """

    def __init__(
        self,
        source_urls: Sequence[str],
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        verify_ssl: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not source_urls:
            raise ValueError("At least one DOF source URL is required")
        self.source_urls = [url.rstrip("/") for url in source_urls]
        self._timeout_seconds = timeout_seconds
        self._verify_ssl = verify_ssl
        self._client = client

    @classmethod
    def from_settings(cls, settings: AppSettings, client: httpx.AsyncClient | None = None) -> "DOFDocumentFetcher":
        return cls(
            settings.dof_source_urls,
            timeout_seconds=settings.dof_timeout_seconds,
            verify_ssl=settings.dof_verify_ssl,
            client=client,
        )

    async def fetch(self, source_url: str, year: int, month: int) -> str:
        """Return the decoded page for ``year``/``month`` from ``source_url``."""

        params = build_params(year, month)
        logger.info("Requesting DOF history %04d-%02d from %s", year, month, source_url)
        try:
            if self._client is not None:
                response = await self._client.get(
                    source_url,
                    params=params,
                    headers={"User-Agent": USER_AGENT},
                    timeout=self._timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout_seconds,
                    verify=self._verify_ssl,
                    follow_redirects=True,
                    headers={"User-Agent": USER_AGENT},
                ) as client:
                    response = await client.get(source_url, params=params)
        except httpx.TimeoutException as exc:
            raise FetchError(source_url, f"timed out after {self._timeout_seconds:g}s") from exc
        except httpx.HTTPError as exc:
            raise FetchError(source_url, f"request failed: {exc}") from exc

        if response.status_code >= 400:
            raise FetchError(source_url, f"HTTP {response.status_code}")
        return response.content.decode(DOF_ENCODING)


__all__ = ["DOFDocumentFetcher", "DOF_ENCODING", "build_params"]
