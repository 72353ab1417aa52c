"""Error types raised by the OTP relay.

Ledger failures are split by cause so the HTTP layer can tell an
infrastructure fault apart from malformed data coming back from the node.
An invalid OTP is not an error: validation returns ``False`` instead.
"""


class LedgerError(Exception):
    """Base class for every failure of a ledger round-trip."""


class LedgerUnavailableError(LedgerError):
    """The node could not be reached or did not answer in time."""


class TransactionFailedError(LedgerError):
    """Gas estimation reverted or the mined transaction has status 0."""


class MissingEventError(LedgerError):
    """An expected event is absent from the transaction receipt."""

    def __init__(self, event_name: str, tx_hash: str = "") -> None:
        self.event_name = event_name
        self.tx_hash = tx_hash
        detail = f" in transaction {tx_hash}" if tx_hash else ""
        super().__init__(f"Event {event_name} not found{detail}")


class MissingBlockError(LedgerError):
    """The node returned no block for a number it reported as latest."""


class InvalidTransitionError(Exception):
    """A workflow session step was attempted out of order."""
