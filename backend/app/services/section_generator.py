"""
Sequential AI content generation across report sections.

The orchestrator runs one section at a time in a fixed order. A failing section
is recorded as skipped and the batch carries on; the caller persists the
successful artifacts with a single write.
"""

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from backend.app.core.config import SECTION_KEYS
from backend.app.core.exceptions import BatchAbortedError, NoSectionsEnabledError

logger = logging.getLogger(__name__)


class SectionGenerator(Protocol):
    """Anything able to produce content for one section."""

    async def generate_section(
        self,
        section: str,
        lead_data: dict[str, Any],
        enrichment_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...


@dataclass(frozen=True)
class SectionSuccess:
    section: str
    artifact: Any

    ok = True


@dataclass(frozen=True)
class SectionSkipped:
    section: str
    reason: str

    ok = False


SectionOutcome = SectionSuccess | SectionSkipped


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot reported after each section attempt."""

    completed: int
    total: int
    current_section: str
    generated: bool

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 100
        return round(self.completed / self.total * 100)

    def to_dict(self) -> dict:
        return {
            "completed": self.completed,
            "total": self.total,
            "current_section": self.current_section,
            "generated": self.generated,
            "percent": self.percent,
        }


@dataclass
class SectionBatchResult:
    """Aggregated outcome of one batch."""

    total: int
    outcomes: list[SectionOutcome] = field(default_factory=list)

    @property
    def content(self) -> dict[str, Any]:
        """Artifacts of the sections that succeeded, keyed by section."""
        return {o.section: o.artifact for o in self.outcomes if isinstance(o, SectionSuccess)}

    @property
    def generated_sections(self) -> list[str]:
        return [o.section for o in self.outcomes if isinstance(o, SectionSuccess)]

    @property
    def skipped_sections(self) -> dict[str, str]:
        return {o.section: o.reason for o in self.outcomes if isinstance(o, SectionSkipped)}

    @property
    def is_empty(self) -> bool:
        return not self.generated_sections

    @property
    def progress(self) -> BatchProgress | None:
        if not self.outcomes:
            return None
        last = self.outcomes[-1]
        return BatchProgress(
            completed=len(self.outcomes),
            total=self.total,
            current_section=last.section,
            generated=isinstance(last, SectionSuccess),
        )


ProgressCallback = Callable[[BatchProgress], Any]


def resolve_enabled_sections(enabled: Mapping[str, bool] | Iterable[str] | None) -> list[str]:
    """
    Turn an enabled-sections selection into an ordered list of section keys.

    Accepts a mapping of key to flag or an iterable of keys. The result follows
    the canonical section order regardless of input order.

    Raises:
        ValueError: On unrecognized keys or an unusable selection type
    """
    if enabled is None:
        return []
    if isinstance(enabled, Mapping):
        selected = [key for key, flag in enabled.items() if flag]
    elif isinstance(enabled, (str, bytes)):
        raise ValueError("Enabled sections must be a mapping or a collection of keys")
    else:
        selected = list(enabled)

    unknown = [key for key in selected if key not in SECTION_KEYS]
    if unknown:
        raise ValueError(f"Unknown section keys: {unknown}")
    chosen = set(selected)
    return [key for key in SECTION_KEYS if key in chosen]


class SectionGeneratorOrchestrator:
    """
    Drives one generation batch for a report.

    Args:
        generator: Per-section content producer
        on_progress: Optional callback (sync or async) called after every attempt
    """

    def __init__(self, generator: SectionGenerator, on_progress: ProgressCallback | None = None):
        self.generator = generator
        self.on_progress = on_progress

    async def generate(
        self,
        enabled_sections: Mapping[str, bool] | Iterable[str] | None,
        lead_data: Mapping[str, Any] | None,
        enrichment_data: Mapping[str, Any] | None = None,
    ) -> SectionBatchResult:
        """
        Generate every enabled section, in order, one at a time.

        Raises:
            NoSectionsEnabledError: Nothing is enabled; no generation call is made
            BatchAbortedError: Input is malformed or something outside a section
                call failed; ``partial`` carries what was gathered so far
        """
        try:
            sections = resolve_enabled_sections(enabled_sections)
        except ValueError as e:
            raise BatchAbortedError(str(e), SectionBatchResult(total=0)) from e

        if not sections:
            raise NoSectionsEnabledError()

        result = SectionBatchResult(total=len(sections))
        if not isinstance(lead_data, Mapping):
            raise BatchAbortedError("Lead data must be an object", result)
        if enrichment_data is not None and not isinstance(enrichment_data, Mapping):
            raise BatchAbortedError("Enrichment data must be an object", result)

        lead = dict(lead_data)
        enrichment = dict(enrichment_data) if enrichment_data is not None else None
        logger.info(f"[SECTIONS] Generating {len(sections)} sections: {', '.join(sections)}")

        for section in sections:
            try:
                artifact = await self.generator.generate_section(section, lead, enrichment)
            except Exception as e:
                reason = str(e) or e.__class__.__name__
                logger.warning(f"[SECTIONS] {section} skipped: {reason}")
                result.outcomes.append(SectionSkipped(section, reason))
            else:
                result.outcomes.append(SectionSuccess(section, artifact))

            await self._report_progress(result)

        logger.info(
            f"[SECTIONS] Batch finished: {len(result.generated_sections)}/{result.total} generated"
        )
        return result

    async def _report_progress(self, result: SectionBatchResult) -> None:
        if self.on_progress is None:
            return
        try:
            outcome = self.on_progress(result.progress)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"[SECTIONS] Progress callback failed, aborting batch: {e}")
            raise BatchAbortedError(f"Progress reporting failed: {e}", result) from e
