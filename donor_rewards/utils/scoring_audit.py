"""
Per-factor record of how a donation's points were decided.

Answers support questions like "why did this donation earn 205?": each
entry says which factor fired, the record value it read and the points it
gave. A value that is present but absent from the rules table (an unknown
urgency, an unlisted blood type) scores 0 and is flagged as a warning,
since it usually means stored documents and rules have drifted.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@dataclass
class ScoringAuditEntry:
    factor: str
    value_used: Any
    points: int
    rules_version: str
    donor_id: Optional[str] = None
    donation_at: Optional[datetime] = None
    warning_message: Optional[str] = None
    recorded_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {k: _jsonable(v) for k, v in vars(self).items()}


class ScoringAuditLog:
    """Entries collected while a DonationPointCalculator scores donations.

    Usage:
        audit_log = ScoringAuditLog()
        DonationPointCalculator(audit_log=audit_log).calculate(donation, donor_id="u-123")
        audit_log.export_to_json("points_audit.json")
    """

    def __init__(self):
        self._entries: list[ScoringAuditEntry] = []

    def log_factor(
        self,
        factor: str,
        value: Any,
        points: int,
        rules_version: str,
        donor_id: Optional[str] = None,
        donation_at: Optional[datetime] = None,
        recognized: bool = True,
    ) -> ScoringAuditEntry:
        """Record one factor; ``recognized=False`` marks a value the rules table lacks."""
        entry = ScoringAuditEntry(factor, value, points, rules_version, donor_id, donation_at)
        if not recognized:
            entry.warning_message = (
                f"AUDIT WARNING: donor {donor_id or '?'}: {factor}={value!r} not in rules "
                f"v{rules_version}, scored 0"
            )
            logger.warning(entry.warning_message)
        self._entries.append(entry)
        return entry

    def get_warnings(self) -> list[ScoringAuditEntry]:
        return [e for e in self._entries if e.warning_message]

    def get_all_entries(self) -> list[ScoringAuditEntry]:
        return list(self._entries)

    def get_summary_for_donor(self, donor_id: str) -> dict:
        """Factor totals and entries for one donor."""
        mine = [e for e in self._entries if e.donor_id == donor_id]
        by_factor: dict[str, int] = {}
        for e in mine:
            by_factor[e.factor] = by_factor.get(e.factor, 0) + e.points
        return {
            "donor_id": donor_id,
            "total_entries": len(mine),
            "total_points": sum(by_factor.values()),
            "points_by_factor": by_factor,
            "warnings": [e.to_dict() for e in mine if e.warning_message],
            "all_entries": [e.to_dict() for e in mine],
        }

    def export_to_json(self, filepath: Union[str, Path]) -> None:
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        warnings = self.get_warnings()
        payload = {
            "exported_at": datetime.now().isoformat(),
            "total_entries": len(self._entries),
            "total_warnings": len(warnings),
            "entries": [e.to_dict() for e in self._entries],
            "warnings": [e.to_dict() for e in warnings],
        }
        path.write_text(json.dumps(payload, indent=2))
        logger.info(f"Wrote {len(self._entries)} audit entries to {path}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
