"""
Record linker - decides which freight a cost entry belongs to.

Cost entries reference their freight by id or by display code, whichever the
operator had at hand, so the association is resolved by comparing normalized
references. Matching is exact after normalization: a short numeric id must
never match an unrelated code by substring.
"""

from collections.abc import Iterable
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from freight_ledger.core.config import DEFAULT_FALLBACK_CODE_LENGTH
from freight_ledger.data.models import CostEntry, FreightRecord
from freight_ledger.data.normalize import normalize_reference, to_text

logger = structlog.get_logger(component="record_linker")


def is_linked(cost_freight_ref: Any, freight_id: Any, freight_code: Any = None) -> bool:
    """
    Check whether a cost reference points at a freight.

    Linked when the normalized reference equals the normalized freight id or
    the normalized freight code. An empty reference never matches, so blank
    references cannot attach to every code-less freight.

    Args:
        cost_freight_ref: Reference stored on the cost entry
        freight_id: Freight identifier
        freight_code: Optional freight display code

    Returns:
        True if the cost belongs to the freight
    """
    reference = normalize_reference(cost_freight_ref)
    if not reference:
        return False
    return reference == normalize_reference(freight_id) or reference == normalize_reference(
        freight_code
    )


def fallback_code(freight_id: Any, length: int = DEFAULT_FALLBACK_CODE_LENGTH) -> str:
    """Upper-cased identifier prefix shown when a freight has no code."""
    return to_text(freight_id)[:length].upper()


class LinkReport(BaseModel):
    """Outcome of resolving cost entries to freight ids in one pass."""

    links: dict[str, str] = Field(default_factory=dict)
    unlinked: list[str] = Field(default_factory=list)
    ambiguous: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def linked_count(self) -> int:
        """Number of costs resolved to exactly one freight."""
        return len(self.links)


def _index_freights(freights: Iterable[FreightRecord]) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for freight in freights:
        if not freight.id:
            continue
        for key in {normalize_reference(freight.id), normalize_reference(freight.code)}:
            if not key:
                continue
            owners = index.setdefault(key, [])
            if freight.id not in owners:
                owners.append(freight.id)
    return index


def build_join_keys(
    costs: Optional[Iterable[CostEntry]],
    freights: Optional[Iterable[FreightRecord]],
) -> LinkReport:
    """
    Resolve every cost entry to a freight id once.

    Used to backfill a stored foreign key for legacy cost entries. A cost whose
    reference matches more than one freight (for example one by id and another
    by code) is reported as ambiguous and left unresolved.

    Args:
        costs: Cost entries to resolve
        freights: Candidate freights

    Returns:
        LinkReport with resolved, unlinked and ambiguous cost ids
    """
    index = _index_freights(freights or [])
    report = LinkReport()

    for cost in costs or []:
        owners = index.get(normalize_reference(cost.freight_ref), [])
        if len(owners) == 1:
            report.links[cost.id] = owners[0]
        elif not owners:
            report.unlinked.append(cost.id)
        else:
            report.ambiguous[cost.id] = list(owners)
            logger.warning(
                "ambiguous_cost_reference",
                cost_id=cost.id,
                freight_ref=cost.freight_ref,
                candidates=owners,
            )

    logger.info(
        "join_keys_built",
        linked=report.linked_count,
        unlinked=len(report.unlinked),
        ambiguous=len(report.ambiguous),
    )
    return report
