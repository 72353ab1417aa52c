#!/usr/bin/env python3
"""Data models for the OTP relay.

This module provides immutable data classes for the read-only block
snapshot served by the relay. Wide integers are carried as decimal
strings so nothing loses precision on its way to a JSON client.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TransactionSummary:
    """One transaction of a block.

    Attributes:
        hash: Transaction hash (with 0x prefix)
        sender: Sending address
        recipient: Receiving address (None for contract creation)
        value: Transferred value in ether, as a decimal string
    """

    hash: str
    sender: str
    recipient: str | None
    value: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hash": self.hash,
            "from": self.sender,
            "to": self.recipient,
            "value": self.value
        }


@dataclass(frozen=True, slots=True)
class AccountBalance:
    """Balance of one known account, in ether as a decimal string."""

    address: str
    balance: str

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "balance": self.balance}


@dataclass(frozen=True, slots=True)
class BlockSnapshot:
    """Read-only projection of one block plus the node's account balances.

    The balances are read at their own query time and may belong to a
    later height than the block itself.

    Attributes:
        number: Block number
        hash: Block hash (with 0x prefix)
        parent_hash: Parent block hash (with 0x prefix)
        nonce: Block nonce
        gas_used: Gas used by the block
        timestamp: Block timestamp (Unix seconds)
        transactions: Transactions included in the block
        accounts: Balances of all accounts known to the node
    """

    number: str
    hash: str
    parent_hash: str
    nonce: str
    gas_used: str
    timestamp: str
    transactions: tuple[TransactionSummary, ...] = ()
    accounts: tuple[AccountBalance, ...] = ()

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"BlockSnapshot(number={self.number}, "
            f"hash={self.hash[:10]}..., "
            f"txs={len(self.transactions)})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase dictionary served over HTTP."""
        return {
            "number": self.number,
            "hash": self.hash,
            "parentHash": self.parent_hash,
            "nonce": self.nonce,
            "gasUsed": self.gas_used,
            "timestamp": self.timestamp,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "accounts": [account.to_dict() for account in self.accounts]
        }
