"""
Balanced guest-to-table allocation
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from seatsync.core.errors import InvalidInput, ValidationError
from seatsync.schemas.table import TableRecord


@dataclass(frozen=True)
class TableAllotment:
    table: TableRecord
    count: int

    @property
    def over_capacity(self) -> bool:
        return self.count > self.table.capacity


@dataclass
class Allocation:
    """Result of an allocation.

    ``assignments`` maps guest index to table; ``allotments`` lists every
    table in input order with its guest count.
    """
    assignments: Dict[int, TableRecord] = field(default_factory=dict)
    allotments: List[TableAllotment] = field(default_factory=list)

    @property
    def over_capacity_tables(self) -> List[TableRecord]:
        return [a.table for a in self.allotments if a.over_capacity]


def allocate(guest_count: int, tables: Sequence[TableRecord]) -> Allocation:
    """Spread ``guest_count`` guests across ``tables`` as evenly as possible.

    The first ``guest_count % len(tables)`` tables take one extra guest, so
    no two tables differ by more than one. Capacity is reported through
    ``TableAllotment.over_capacity`` but never enforced here.
    """
    if not tables:
        raise InvalidInput("At least one table is required")
    if guest_count <= 0:
        raise InvalidInput("Guest count must be positive")

    base, remainder = divmod(guest_count, len(tables))

    allocation = Allocation()
    guest_index = 0
    for position, table in enumerate(tables):
        count = base + 1 if position < remainder else base
        for _ in range(count):
            allocation.assignments[guest_index] = table
            guest_index += 1
        allocation.allotments.append(TableAllotment(table=table, count=count))

    return allocation


AllocationStrategy = Callable[[int, Sequence[TableRecord]], Allocation]

STRATEGIES: Dict[str, AllocationStrategy] = {
    "balanced": allocate,
}


def get_strategy(name: str) -> AllocationStrategy:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValidationError(
            f"Unknown assignment strategy '{name}'. Available: {', '.join(sorted(STRATEGIES))}"
        ) from None
