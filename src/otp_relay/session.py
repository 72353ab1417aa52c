#!/usr/bin/env python3
"""Workflow session state machine.

Models the order in which a user moves through the transfer workflow:
log in, describe a transfer, receive an OTP, then validate it. The HTTP
routes stay independently callable; drivers that want the ordering
enforced step a ``WorkflowSession`` alongside their calls.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of a transfer workflow session."""
    LOGGED_OUT = "loggedOut"
    LOGGED_IN = "loggedIn"
    TRANSFER_INITIATED = "transferInitiated"
    OTP_PENDING = "otpPending"
    OTP_VALIDATED = "otpValidated"


@dataclass(frozen=True, slots=True)
class TransferRequest:
    """Transfer described by the user before an OTP is issued."""

    from_account: str
    to_account: str
    amount: str
    currency: str

    def __post_init__(self) -> None:
        if not all((self.from_account, self.to_account, self.amount, self.currency)):
            raise ValueError("Please fill in all fields.")

    def __str__(self) -> str:
        return f"{self.amount} {self.currency} from {self.from_account} to {self.to_account}"


class WorkflowSession:
    """Tracks one user's progress and rejects out-of-order steps."""

    _TRANSITIONS: dict[str, tuple[SessionState, SessionState]] = {
        "login": (SessionState.LOGGED_OUT, SessionState.LOGGED_IN),
        "initiate_transfer": (SessionState.LOGGED_IN, SessionState.TRANSFER_INITIATED),
        "otp_issued": (SessionState.TRANSFER_INITIATED, SessionState.OTP_PENDING),
        "otp_validated": (SessionState.OTP_PENDING, SessionState.OTP_VALIDATED),
    }

    def __init__(self) -> None:
        self.state = SessionState.LOGGED_OUT
        self.transfer: TransferRequest | None = None

    def _advance(self, step: str) -> None:
        source, target = self._TRANSITIONS[step]
        if self.state is not source:
            raise InvalidTransitionError(
                f"Cannot {step.replace('_', ' ')} while {self.state.value} "
                f"(expected {source.value})"
            )
        logger.debug(f"Session {self.state.value} -> {target.value}")
        self.state = target

    def login(self, authenticated: bool) -> bool:
        """Moves to loggedIn if the credential check passed."""
        if authenticated:
            self._advance("login")
        return authenticated

    def initiate_transfer(self, transfer: TransferRequest) -> None:
        self._advance("initiate_transfer")
        self.transfer = transfer

    def otp_issued(self) -> None:
        # A fresh OTP while one is pending replaces it
        if self.state is SessionState.OTP_PENDING:
            return
        self._advance("otp_issued")

    def otp_checked(self, is_valid: bool) -> None:
        """Moves to otpValidated on success; a failed check stays pending."""
        if self.state is not SessionState.OTP_PENDING:
            raise InvalidTransitionError(
                f"Cannot validate OTP while {self.state.value} (expected otpPending)"
            )
        if is_valid:
            self._advance("otp_validated")

    def logout(self) -> None:
        self.state = SessionState.LOGGED_OUT
        self.transfer = None
