"""Shared fixtures: the OTP contract ABI and an in-memory ledger."""

from collections import deque
from typing import Any

import pytest

from otp_relay.errors import LedgerUnavailableError, TransactionFailedError
from otp_relay.utils.contract_utility import ContractDescriptor

CONTRACT_ADDRESS = "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"

ACCOUNTS = [
    "0x627306090abaB3A6e1400e9345bC60c78a8BEf57",
    "0xf17f52151EbEF6C7334FAD080c5704D77216b732",
]

OTP_ABI: list[dict[str, Any]] = [
    {
        "inputs": [],
        "name": "generateOTP",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"name": "_otp", "type": "uint256"}],
        "name": "validateOTP",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "user", "type": "address"},
            {"indexed": False, "name": "otp", "type": "uint256"}
        ],
        "name": "OTPGenerated",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "user", "type": "address"},
            {"indexed": False, "name": "isValid", "type": "bool"}
        ],
        "name": "OTPValidated",
        "type": "event"
    },
]


class FakeLedger:
    """In-memory stand-in for LedgerClient backed by a single-slot OTP contract.

    Every transaction mines one block. A successful validation consumes the
    outstanding OTP; issuing a new one overwrites it.
    """

    def __init__(self, otps: list[int] | None = None) -> None:
        self.descriptor = ContractDescriptor(address=CONTRACT_ADDRESS, abi=OTP_ABI)
        self.account_list = list(ACCOUNTS)
        self.balances = {account: 100 * 10**18 for account in self.account_list}
        self.blocks: list[dict[str, Any]] = [self._make_block(0, [])]
        self.pending_otps = deque(otps or [482913, 105722, 731004])
        self.current_otp: int | None = None
        self.down = False
        self.emit_events = True
        self.closed = False
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    @staticmethod
    def _make_block(number: int, transactions: list[dict[str, Any]]) -> dict[str, Any]:
        return {
            "number": number,
            "hash": bytes([number + 1]) * 32,
            "parentHash": bytes([number]) * 32,
            "nonce": (number + 7).to_bytes(8, "big"),
            "gasUsed": 21000 * len(transactions),
            "timestamp": 1700000000 + number,
            "transactions": transactions,
        }

    def _check_up(self) -> None:
        if self.down:
            raise LedgerUnavailableError("Ledger node unreachable")

    def _mine(self, method: str) -> int:
        number = len(self.blocks)
        tx = {
            "hash": bytes([0xA0 + number]) * 32,
            "from": self.account_list[0],
            "to": CONTRACT_ADDRESS,
            "value": 0,
        }
        self.blocks.append(self._make_block(number, [tx]))
        return number

    async def is_connected(self) -> bool:
        return not self.down

    async def accounts(self) -> list[str]:
        self._check_up()
        return list(self.account_list)

    async def caller_account(self) -> str:
        return (await self.accounts())[0]

    async def block_number(self) -> int:
        self._check_up()
        return len(self.blocks) - 1

    async def get_block(self, number: int, full_transactions: bool = True) -> dict[str, Any] | None:
        self._check_up()
        if number >= len(self.blocks):
            return None
        return self.blocks[number]

    async def get_balance(self, address: str) -> int:
        self._check_up()
        return self.balances[address]

    async def gas_price(self) -> int:
        self._check_up()
        return 20 * 10**9

    def function_input_types(self, method: str) -> list[str]:
        return self.descriptor.input_types(method)

    async def transact(self, method: str, *args: Any) -> dict[str, Any]:
        self._check_up()
        self.calls.append((method, args))
        events: dict[str, dict[str, Any]] = {}

        match method:
            case "generateOTP":
                self.current_otp = self.pending_otps.popleft()
                events["OTPGenerated"] = {"user": self.account_list[0], "otp": self.current_otp}
            case "validateOTP":
                (candidate,) = args
                is_valid = self.current_otp is not None and candidate == self.current_otp
                if is_valid:
                    self.current_otp = None
                events["OTPValidated"] = {"user": self.account_list[0], "isValid": is_valid}
            case _:
                raise TransactionFailedError(f"Unknown method {method}")

        number = self._mine(method)
        return {
            "status": 1,
            "blockNumber": number,
            "transactionHash": self.blocks[number]["transactions"][0]["hash"],
            "events": events if self.emit_events else {},
        }

    def decode_event(self, receipt: dict[str, Any], event_name: str) -> dict[str, Any] | None:
        return receipt["events"].get(event_name)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def descriptor() -> ContractDescriptor:
    return ContractDescriptor(address=CONTRACT_ADDRESS, abi=OTP_ABI)
