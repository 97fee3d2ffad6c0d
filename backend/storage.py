"""
NetWorth Pro - Server Storage
=============================
In-memory store for saved net worth calculations.

Nothing survives a process restart. Records are immutable: every save
creates a new record with a fresh id.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from models import InsertNetWorthCalculation, NetWorthCalculation


class NetWorthStorage:
    """Mapping of generated id -> NetWorthCalculation."""

    def __init__(self):
        self._calculations: Dict[str, NetWorthCalculation] = {}

    def save_calculation(self, calculation: InsertNetWorthCalculation) -> NetWorthCalculation:
        """Store a new record and return it with id and timestamps filled in."""
        now = datetime.now(timezone.utc)
        record = NetWorthCalculation(
            **calculation.model_dump(),
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        self._calculations[record.id] = record
        return record

    def get_calculation(self, calculation_id: str) -> Optional[NetWorthCalculation]:
        return self._calculations.get(calculation_id)

    def get_user_calculations(self, user_id: str) -> List[NetWorthCalculation]:
        """All records saved for a user, oldest first."""
        return [calc for calc in self._calculations.values() if calc.user_id == user_id]

    def __len__(self) -> int:
        return len(self._calculations)
