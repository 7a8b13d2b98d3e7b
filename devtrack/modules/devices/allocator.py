# devtrack/modules/devices/allocator.py
"""
Device code allocation.

Codes look like INV-{kode_item}-{sequence}-{year}, e.g. INV-01-004-24.
The sequence counts per (kode_item, purchase year) bucket and is recomputed
from the stored devices every time: next = highest existing + 1. Nothing is
persisted besides the devices themselves.
"""

import re
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from devtrack.core.errors import SequenceOverflowError
from devtrack.core.validation import parse_date

logger = logging.getLogger(__name__)

CODE_PREFIX = "INV"
MAX_SEQUENCE = 999

_LEADING_INT = re.compile(r"\s*(\d+)")


def year_suffix(value: Any) -> Optional[str]:
    """Two-digit year of a purchase date ("05" for 2005), None if unreadable."""
    d = parse_date(value)
    if d is None:
        return None
    return f"{d.year % 100:02d}"


def code_prefix(kode_item: str) -> str:
    return f"{CODE_PREFIX}-{kode_item}-"


def format_code(kode_item: str, sequence: int, suffix: str) -> str:
    return f"{CODE_PREFIX}-{kode_item}-{sequence:03d}-{suffix}"


def split_code(code: str) -> dict:
    """Break a code into its parts: index 1 item code, 2 sequence, 3 year."""
    parts = (code or "").split("-")
    return {
        "kode_item": parts[1] if len(parts) > 1 else "",
        "sequence": parts[2] if len(parts) > 2 else "",
        "year": parts[3] if len(parts) > 3 else "",
    }


def parse_sequence(code: str) -> int:
    """Sequence segment as an int; malformed or missing segments count as 0."""
    m = _LEADING_INT.match(split_code(code)["sequence"])
    if not m:
        return 0
    return int(m.group(1))


@dataclass(frozen=True)
class AllocationResult:
    code: str
    kode_item: str
    sequence: int
    year_suffix: str
    fallback: bool = False

    def __str__(self):
        return self.code


class CodeAllocator:
    """
    Computes the next device code for a kode item and purchase date.

    query_by_prefix(prefix) must return rows with "kode_id" and
    "tanggal_beli"; it defaults to the devices table.
    """

    def __init__(self, query_by_prefix: Optional[Callable[[str], Iterable[Any]]] = None):
        if query_by_prefix is None:
            from .models import query_by_prefix
        self.query_by_prefix = query_by_prefix

    def allocate(self, kode_item: str, purchase_date: Any) -> str:
        return self.allocate_detailed(kode_item, purchase_date).code

    def allocate_detailed(self, kode_item: str, purchase_date: Any) -> AllocationResult:
        suffix = year_suffix(purchase_date)
        if suffix is None:
            raise ValueError(f"Unreadable purchase date: {purchase_date!r}")

        try:
            rows = list(self.query_by_prefix(code_prefix(kode_item)))
        except Exception as e:
            # Degraded: the store could not be read, so 001 may collide with existing data.
            logger.warning(
                f"Code allocation fell back to sequence 001 for {kode_item}/{suffix}: "
                f"device store query failed: {e}"
            )
            return AllocationResult(format_code(kode_item, 1, suffix), kode_item, 1, suffix, fallback=True)

        sequences = [
            parse_sequence(row["kode_id"])
            for row in rows
            if year_suffix(row["tanggal_beli"]) == suffix
        ]
        sequence = max(sequences) + 1 if sequences else 1

        if sequence > MAX_SEQUENCE:
            raise SequenceOverflowError(
                f"No sequence left for kode item {kode_item} in year {suffix} (max {MAX_SEQUENCE})",
                payload={"kode_item": kode_item, "year": suffix},
            )

        code = format_code(kode_item, sequence, suffix)
        logger.debug(f"Allocated {code} ({len(sequences)} existing in bucket)")
        return AllocationResult(code, kode_item, sequence, suffix)
