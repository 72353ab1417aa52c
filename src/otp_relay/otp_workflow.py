#!/usr/bin/env python3
"""OTP issuance and validation against the OTPAuthentication contract.

Each operation is a single contract transaction. The result is read back
from the event the contract emits in that transaction's receipt, so the
relay never holds a copy of the outstanding OTP.
"""

import logging
from typing import TYPE_CHECKING

from .errors import MissingEventError

if TYPE_CHECKING:
    from .ledger import LedgerClient

logger = logging.getLogger(__name__)


class OTPWorkflow:
    """Sequences OTP generation and validation as ledger transactions."""

    GENERATE_METHOD = "generateOTP"
    VALIDATE_METHOD = "validateOTP"
    GENERATED_EVENT = "OTPGenerated"
    VALIDATED_EVENT = "OTPValidated"

    def __init__(self, ledger: "LedgerClient") -> None:
        self.ledger = ledger

    async def issue_otp(self) -> str:
        """
        Generate a new OTP on-chain, replacing any outstanding one.

        Returns:
            The generated OTP as a display string

        Raises:
            MissingEventError: If the receipt has no usable OTPGenerated event
            LedgerError: If the transaction could not be completed
        """
        receipt = await self.ledger.transact(self.GENERATE_METHOD)
        args = self.ledger.decode_event(receipt, self.GENERATED_EVENT)

        otp = args.get("otp") if args else None
        if otp is None or str(otp) == "":
            raise MissingEventError(self.GENERATED_EVENT, _tx_hash(receipt))

        logger.info(f"Generated OTP: {otp}")
        return str(otp)

    async def check_otp(self, candidate: str) -> bool:
        """
        Validate a candidate against the outstanding OTP on-chain.

        A candidate that cannot be encoded for the contract's parameter type
        (letters for a numeric OTP, say) is rejected without a transaction.

        Args:
            candidate: OTP as entered by the user

        Returns:
            True if the contract reports the candidate as valid

        Raises:
            MissingEventError: If the receipt has no OTPValidated event
            LedgerError: If the transaction could not be completed
        """
        input_types = self.ledger.function_input_types(self.VALIDATE_METHOD)
        try:
            argument = _coerce_candidate(candidate, input_types)
        except ValueError as e:
            logger.info(f"Rejecting OTP candidate {candidate!r}: {e}")
            return False

        receipt = await self.ledger.transact(self.VALIDATE_METHOD, argument)
        args = self.ledger.decode_event(receipt, self.VALIDATED_EVENT)
        if not args or "isValid" not in args:
            raise MissingEventError(self.VALIDATED_EVENT, _tx_hash(receipt))

        is_valid = bool(args["isValid"])
        logger.info(f"Validation result for OTP \"{candidate}\": {'Valid' if is_valid else 'Invalid'}")
        return is_valid


def _coerce_candidate(candidate: str, input_types: list[str]) -> int | str:
    """Converts the candidate to the contract's declared parameter type."""
    if len(input_types) != 1:
        raise ValueError(f"validation expects {len(input_types)} arguments")

    match input_types[0]:
        case abi_type if abi_type.startswith(("uint", "int")):
            text = str(candidate).strip()
            if not (text.isascii() and text.isdigit()):
                raise ValueError("not a non-negative integer")
            value = int(text)
            if value > _integer_max(abi_type):
                raise ValueError(f"out of range for {abi_type}")
            return value
        case "string":
            return str(candidate)
        case abi_type:
            raise ValueError(f"unsupported parameter type {abi_type}")


def _integer_max(abi_type: str) -> int:
    """Largest value an ABI ``uint<N>``/``int<N>`` parameter can hold."""
    signed = not abi_type.startswith("uint")
    bits = abi_type[3:] if signed else abi_type[4:]
    if bits and not bits.isdigit():
        raise ValueError(f"unsupported parameter type {abi_type}")
    size = int(bits) if bits else 256
    return 2 ** (size - 1) - 1 if signed else 2 ** size - 1


def _tx_hash(receipt) -> str:
    tx_hash = receipt.get("transactionHash") if hasattr(receipt, "get") else None
    if tx_hash is None:
        return ""
    return tx_hash.hex() if isinstance(tx_hash, bytes) else str(tx_hash)
