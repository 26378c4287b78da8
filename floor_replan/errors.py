"""Errors raised by the replenishment engines.

Each error carries a ``status_code`` hint so a transport layer can map it
without knowing the engine internals.
"""


class ReplanError(Exception):
    """Base class for every expected failure of a replenishment operation."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReplanError):
    """A required field is missing or malformed. Nothing was mutated."""


class NotFoundError(ReplanError):
    """Unknown run, unknown line, or a key that is not in the ledger."""

    status_code = 404


class InsufficientStockError(ReplanError):
    """The ledger holds fewer units than the line needs."""

    status_code = 409

    def __init__(self, have: int, need: int):
        super().__init__(f"Insufficient stock. Have {have}, need {need}")
        self.have = have
        self.need = need


class EmptyLedgerError(ReplanError):
    """A replan was requested before any stock snapshot was loaded."""

    def __init__(self, message: str = "Stock is empty. Update stock first."):
        super().__init__(message)
