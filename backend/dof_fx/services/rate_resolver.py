"""DOF pipeline: fetch, extract and fall back across prior business days.

Resolution is a small state machine. Each attempt sweeps every configured
mirror for one candidate date, concurrently, keeping the first successful
extraction. Only when the whole sweep comes back empty does the candidate
move to the previous business day and the next attempt begin, so attempts
never overlap. An optional overall deadline bounds the entire loop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence

from opentelemetry import trace

from dof_fx.core.dates import previous_business_day
from dof_fx.core.telemetry import pipeline_instruments
from dof_fx.domain import RateKind, ResolvedRate
from dof_fx.errors import (
    AttemptOutcome,
    FetchError,
    RateUnavailable,
    ResolutionTimeout,
    UpstreamUnavailable,
)
from dof_fx.parsing import RateExtractor, RowPatternExtractor

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_MAX_ATTEMPTS = 3
FALLBACK_NOTE = "SIN_PUBLICACION_FECHA; USADO_ANTERIOR={effective}"

OUTCOME_FOUND = "found"
OUTCOME_NOT_FOUND = "not_found"


class DocumentFetcher(Protocol):
    source_urls: Sequence[str]

    async def fetch(self, source_url: str, year: int, month: int) -> str: ...


@dataclass
class _ResolutionState:
    requested_date: date
    candidate_date: date
    attempt: int = 0
    documents_fetched: int = 0
    trail: list[AttemptOutcome] = field(default_factory=list)

    def record(self, source_url: str, outcome: str) -> None:
        self.trail.append(AttemptOutcome(self.candidate_date, source_url, outcome))


def _failure_outcome(exc: Exception) -> str:
    if isinstance(exc, ResolutionTimeout):
        return "timeout"
    if isinstance(exc, UpstreamUnavailable):
        return "upstream_unavailable"
    return "unavailable"


def fallback_note(requested: date, effective: date) -> str | None:
    if requested == effective:
        return None
    return FALLBACK_NOTE.format(effective=effective.isoformat())


class RateResolver:
    """Resolve the published DOF rate for a date."""

    def __init__(
        self,
        fetcher: DocumentFetcher,
        extractor: RateExtractor | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        deadline_seconds: float | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.fetcher = fetcher
        self.extractor = extractor or RowPatternExtractor()
        self.max_attempts = max_attempts
        self.deadline_seconds = deadline_seconds

    async def resolve(self, requested_date: date, *, deadline_seconds: float | None = None) -> ResolvedRate:
        """Return the rate for ``requested_date`` or the closest prior business day.

        Raises ``RateUnavailable`` when no candidate date has a publication,
        ``UpstreamUnavailable`` when no mirror could be reached at all and
        ``ResolutionTimeout`` when the deadline elapses first.
        """

        deadline = deadline_seconds if deadline_seconds is not None else self.deadline_seconds
        state = _ResolutionState(requested_date=requested_date, candidate_date=requested_date)
        instruments = pipeline_instruments()
        with tracer.start_as_current_span("dof.resolve_rate") as span:
            span.set_attribute("dof.requested_date", requested_date.isoformat())
            try:
                if deadline is None:
                    resolved = await self._run(state)
                else:
                    try:
                        resolved = await asyncio.wait_for(self._run(state), timeout=deadline)
                    except asyncio.TimeoutError as exc:
                        logger.error(
                            "DOF resolution for %s timed out after %s attempt(s)",
                            requested_date.isoformat(),
                            state.attempt,
                        )
                        raise ResolutionTimeout(requested_date, deadline, state.trail) from exc
            except (RateUnavailable, UpstreamUnavailable) as exc:
                instruments.resolutions.add(1, {"outcome": _failure_outcome(exc)})
                raise
            instruments.resolutions.add(1, {"outcome": OUTCOME_FOUND, "fell_back": resolved.fell_back})
            instruments.attempts.record(resolved.attempts)
            span.set_attribute("dof.effective_date", resolved.effective_date.isoformat())
            span.set_attribute("dof.attempts", resolved.attempts)
            return resolved

    async def _run(self, state: _ResolutionState) -> ResolvedRate:
        while state.attempt < self.max_attempts:
            state.attempt += 1
            value = await self._sweep(state)
            if value is not None:
                return self._resolved(state, value)
            logger.info(
                "No DOF publication for %s (attempt %d/%d)",
                state.candidate_date.isoformat(),
                state.attempt,
                self.max_attempts,
            )
            if state.attempt < self.max_attempts:
                state.candidate_date = previous_business_day(state.candidate_date)

        if state.documents_fetched == 0:
            raise UpstreamUnavailable(state.requested_date, state.trail)
        raise RateUnavailable(state.requested_date, state.attempt, state.trail)

    async def _sweep(self, state: _ResolutionState) -> Decimal | None:
        candidate = state.candidate_date
        order = {url: index for index, url in enumerate(self.fetcher.source_urls)}
        tasks = {
            asyncio.create_task(self._try_source(url, candidate)): url
            for url in self.fetcher.source_urls
        }
        pending: set[asyncio.Task[Decimal | None]] = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                found: Decimal | None = None
                for task in sorted(done, key=lambda t: order[tasks[t]]):
                    url = tasks[task]
                    try:
                        value = task.result()
                    except FetchError as exc:
                        logger.warning("DOF source failed for %s: %s", candidate.isoformat(), exc)
                        state.record(url, f"fetch_error: {exc}")
                        continue
                    state.documents_fetched += 1
                    if value is None:
                        state.record(url, OUTCOME_NOT_FOUND)
                    elif found is None:
                        state.record(url, OUTCOME_FOUND)
                        found = value
                if found is not None:
                    return found
            return None
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _try_source(self, source_url: str, candidate: date) -> Decimal | None:
        document = await self.fetcher.fetch(source_url, candidate.year, candidate.month)
        return self.extractor.extract(document, candidate)

    def _resolved(self, state: _ResolutionState, value: Decimal) -> ResolvedRate:
        note = fallback_note(state.requested_date, state.candidate_date)
        if note:
            logger.info(
                "DOF rate for %s taken from prior business day %s",
                state.requested_date.isoformat(),
                state.candidate_date.isoformat(),
            )
        return ResolvedRate(
            kind=RateKind.PUBLISHED,
            value=value,
            requested_date=state.requested_date,
            effective_date=state.candidate_date,
            note=note,
            attempts=state.attempt,
        )


__all__ = ["DocumentFetcher", "FALLBACK_NOTE", "RateResolver", "fallback_note"]
