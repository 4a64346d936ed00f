"""Exceptions raised by the finance tracker before any write happens."""

from __future__ import annotations


class FinanceError(Exception):
    """Base class for finance tracker errors."""


class ValidationError(FinanceError, ValueError):
    """Input rejected before it reached the ledger store."""


class DistributionError(ValidationError):
    """Income source percentages do not add up to 100."""

    def __init__(self, total: float):
        self.total = total
        super().__init__(f"Distribution percentages must sum to 100, got {total:g}")


class CategoryInUseError(FinanceError):
    """A category cannot be deleted while transactions reference it."""

    def __init__(self, category_id: str, count: int):
        self.category_id = category_id
        self.count = count
        super().__init__(
            f"Category '{category_id}' is referenced by {count} transaction(s) and cannot be deleted"
        )


class NotFoundError(FinanceError, KeyError):
    """No record with the requested id exists."""

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} '{record_id}' not found")

    def __str__(self) -> str:
        return self.args[0]


class PersistenceError(FinanceError):
    """The ledger store did not confirm a write."""
