#!/usr/bin/env python3
"""Block summary assembly for the OTP relay.

Builds the read-only snapshot of the latest block and the balances of
every account the node knows about.
"""

import asyncio
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from web3 import Web3

from .errors import MissingBlockError
from .models import AccountBalance, BlockSnapshot, TransactionSummary

if TYPE_CHECKING:
    from .ledger import LedgerClient

logger = logging.getLogger(__name__)


def format_ether(wei: int) -> str:
    """Wei amount as a plain decimal ether string (no exponent)."""
    ether = Web3.from_wei(wei, "ether")
    if isinstance(ether, Decimal):
        text = format(ether, "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text or "0"
    return str(ether)


def _hex(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def _wide_int(value: Any) -> str:
    """Decimal string of an integer field that may arrive as bytes or hex."""
    match value:
        case None:
            return "0"
        case bytes() | bytearray():
            return str(int.from_bytes(value, "big"))
        case str() if value.startswith("0x"):
            return str(int(value, 16))
        case _:
            return str(int(value))


class BlockSummaryBuilder:
    """Assembles block snapshots from several independent ledger reads.

    No single height is pinned across the reads: under concurrent chain
    growth the balances may already reflect a later block than the one
    reported.
    """

    def __init__(self, ledger: "LedgerClient") -> None:
        self.ledger = ledger

    async def latest_block(self) -> BlockSnapshot:
        """
        Snapshot of the latest block with all account balances.

        Returns:
            BlockSnapshot with decimal-string fields

        Raises:
            MissingBlockError: If the node returns no block for the latest number
            LedgerError: If any ledger read fails
        """
        number = await self.ledger.block_number()
        block = await self.ledger.get_block(number, full_transactions=True)
        if not block:
            raise MissingBlockError(f"Ledger returned no block for number {number}")

        accounts = await self.ledger.accounts()
        balances = await asyncio.gather(
            *(self.ledger.get_balance(account) for account in accounts)
        )

        transactions = tuple(
            self._summarize_transaction(tx)
            for tx in block.get("transactions", [])
        )

        snapshot = BlockSnapshot(
            number=str(number),
            hash=_hex(block.get("hash")),
            parent_hash=_hex(block.get("parentHash")),
            nonce=_wide_int(block.get("nonce")),
            gas_used=_wide_int(block.get("gasUsed")),
            timestamp=_wide_int(block.get("timestamp")),
            transactions=transactions,
            accounts=tuple(
                AccountBalance(address=account, balance=format_ether(balance))
                for account, balance in zip(accounts, balances)
            )
        )
        logger.debug(f"Built {snapshot}")
        return snapshot

    async def total_blocks(self) -> int:
        """The latest block number."""
        return await self.ledger.block_number()

    @staticmethod
    def _summarize_transaction(tx: Any) -> TransactionSummary:
        # Hash-only entries appear if the node ignored full_transactions
        if isinstance(tx, (bytes, bytearray, str)):
            return TransactionSummary(hash=_hex(tx), sender="", recipient=None, value="0")

        return TransactionSummary(
            hash=_hex(tx.get("hash")),
            sender=tx.get("from", ""),
            recipient=tx.get("to"),
            value=format_ether(tx.get("value", 0))
        )
