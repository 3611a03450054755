# src/tracking/call_logger.py — v2
"""Usage call logging — records every metered vendor call.

Records can be appended to a JSON Lines file and read back for the
``usage`` CLI command.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from snowgoose.llm.models import TokenUsage
from snowgoose.tracking.models import UsageRecord

logger = logging.getLogger(__name__)


class CallLogger:
    """Accumulates usage records for the lifetime of the process."""

    def __init__(self) -> None:
        self._records: list[UsageRecord] = []

    def record(
        self,
        user_id: int,
        vendor: str,
        model: str,
        usage: TokenUsage,
        cost: float,
        status: str = "charged",
    ) -> UsageRecord:
        """Record one metered call and return the stored entry."""
        record = UsageRecord(
            call_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            user_id=user_id,
            vendor=vendor,
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_tokens=usage.total_tokens,
            cost=cost,
            status=status,
        )
        self._records.append(record)
        return record

    @property
    def records(self) -> list[UsageRecord]:
        """All recorded calls."""
        return list(self._records)

    @property
    def total_cost(self) -> float:
        return sum(r.cost for r in self._records if r.status == "charged")

    @property
    def total_calls(self) -> int:
        return len(self._records)

    def save(self, path: Path) -> None:
        """Append all records to a JSON Lines file and clear the buffer."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            for record in self._records:
                f.write(json.dumps(record.model_dump(mode="json")) + "\n")
        logger.debug("Flushed %d usage records to %s", len(self._records), path)
        self._records.clear()


def load_records(path: Path) -> list[UsageRecord]:
    """Read usage records from a JSON Lines file (missing file → empty list)."""
    path = Path(path).expanduser()
    if not path.exists():
        return []
    records: list[UsageRecord] = []
    with path.open(encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                records.append(UsageRecord.model_validate_json(line))
    return records
