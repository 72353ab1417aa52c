#!/usr/bin/env python3
"""Ledger client adapter for the OTP relay.

This module wraps the calls the relay makes against the ledger node:
account listing, block and balance queries, and contract transactions
submitted with an estimated (and scaled) gas limit.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.logs import DISCARD
from web3.middleware import SignAndSendRawMiddlewareBuilder
from web3.types import BlockData, HexBytes, TxParams, TxReceipt, Wei

from .config import RelayConfig
from .errors import LedgerError, LedgerUnavailableError, TransactionFailedError
from .utils.contract_utility import ContractDescriptor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerClient:
    """
    Adapter over an ``AsyncWeb3`` connection and the bound OTP contract.

    Every call is bounded by ``request_timeout`` and any failure surfaces
    as a ``LedgerError`` subtype. There is no retry.
    """

    def __init__(
        self,
        rpc_url: str,
        descriptor: ContractDescriptor,
        gas_multiplier: float = 2.0,
        request_timeout: float = 30,
        receipt_timeout: float = 120,
        private_key: str | None = None,
        w3: AsyncWeb3 | None = None
    ) -> None:
        """
        Initialize the LedgerClient.

        Args:
            rpc_url: RPC URL of the ledger node
            descriptor: Address and ABI of the deployed OTP contract
            gas_multiplier: Factor applied to every gas estimate
            request_timeout: Seconds allowed for each ledger call
            receipt_timeout: Seconds allowed for a transaction to be mined
            private_key: Local signing key (optional - node accounts otherwise)
            w3: Pre-built AsyncWeb3 instance (optional)
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")

        self.rpc_url = rpc_url
        self.descriptor = descriptor
        self.gas_multiplier = gas_multiplier
        self.request_timeout = request_timeout
        self.receipt_timeout = receipt_timeout

        self.w3: AsyncWeb3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        self.signer: LocalAccount | None = None

        # Add signing middleware only if a key is provided
        if private_key:
            self._add_signing_middleware(private_key)

        self.contract: AsyncContract = self.w3.eth.contract(
            address=descriptor.address,
            abi=descriptor.abi
        )
        logger.info(f"LedgerClient bound to contract {descriptor.address} via {rpc_url}")

    @classmethod
    def from_config(cls, config: RelayConfig) -> "LedgerClient":
        """Builds a client from relay configuration, loading the contract artifact."""
        descriptor = ContractDescriptor.from_artifact(
            config.ledger.contract_json_path,
            config.ledger.network_id,
            address_override=config.ledger.contract_address
        )
        return cls(
            rpc_url=config.ledger.rpc_url,
            descriptor=descriptor,
            gas_multiplier=config.transactions.gas_multiplier,
            request_timeout=config.transactions.request_timeout,
            receipt_timeout=config.transactions.receipt_timeout,
            private_key=config.ledger.private_key
        )

    def _add_signing_middleware(self, secret: str) -> None:
        """
        Sign transactions locally with the given key.

        Args:
            secret: Private key for signing transactions
        """
        account: LocalAccount = Account.from_key(secret)
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(account))
        self.w3.eth.default_account = account.address
        self.signer = account

    async def _call(self, awaitable: Awaitable[T], what: str, timeout: float | None = None) -> T:
        """Awaits one ledger round-trip, mapping failures onto LedgerError."""
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout or self.request_timeout)
        except LedgerError:
            raise
        except (asyncio.TimeoutError, TimeExhausted) as e:
            raise LedgerUnavailableError(f"Timed out during {what}") from e
        except (ConnectionError, OSError) as e:
            raise LedgerUnavailableError(f"Ledger node unreachable during {what}: {e}") from e
        except ContractLogicError as e:
            raise TransactionFailedError(f"Contract reverted during {what}: {e}") from e
        except Exception as e:
            raise LedgerError(f"Ledger call failed during {what}: {e}") from e

    async def is_connected(self) -> bool:
        """Probe the node; never raises."""
        try:
            return bool(await asyncio.wait_for(self.w3.is_connected(), timeout=self.request_timeout))
        except Exception as e:
            logger.warning(f"Connectivity probe failed: {e}")
            return False

    async def accounts(self) -> list[str]:
        """Accounts known to (unlocked on) the node."""
        return list(await self._call(self.w3.eth.accounts, "account listing"))

    async def caller_account(self) -> str:
        """Account used as transaction sender."""
        if self.signer is not None:
            return self.signer.address
        accounts = await self.accounts()
        if not accounts:
            raise LedgerError("Ledger node reports no accounts")
        return accounts[0]

    async def block_number(self) -> int:
        return await self._call(self.w3.eth.block_number, "block number query")

    async def get_block(self, number: int, full_transactions: bool = True) -> BlockData:
        return await self._call(
            self.w3.eth.get_block(number, full_transactions=full_transactions),
            f"block {number} query"
        )

    async def get_balance(self, address: str) -> Wei:
        return await self._call(self.w3.eth.get_balance(address), f"balance query for {address}")

    async def gas_price(self) -> Wei:
        return await self._call(self.w3.eth.gas_price, "gas price query")

    def function_input_types(self, method: str) -> list[str]:
        return self.descriptor.input_types(method)

    async def transact(self, method: str, *args: Any) -> TxReceipt:
        """
        Submit a contract call and wait until it is mined.

        The gas limit is the node's estimate scaled by ``gas_multiplier``.

        Args:
            method: Contract function name
            *args: Function arguments, already ABI-typed

        Returns:
            The mined transaction receipt

        Raises:
            LedgerError: If any step fails or the transaction reverted
        """
        contract_function = getattr(self.contract.functions, method)(*args)

        account = await self.caller_account()
        estimate: int = await self._call(
            contract_function.estimate_gas({'from': account}),
            f"gas estimation for {method}"
        )
        gas_limit = int(estimate * self.gas_multiplier)
        gas_price = await self.gas_price()

        tx_params: TxParams = {
            'from': account,
            'gas': gas_limit,
            'gasPrice': gas_price
        }
        logger.debug(f"Submitting {method} from {account} with gas={gas_limit} (estimate {estimate}), gasPrice={gas_price}")

        tx_hash: HexBytes = await self._call(contract_function.transact(tx_params), f"{method} submission")
        receipt: TxReceipt = await self._call(
            self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout),
            f"{method} receipt wait",
            # Outer bound just past the library deadline
            timeout=self.receipt_timeout + 1
        )

        # Use walrus operator for status check
        if (status := receipt.get('status', 0)) != 1:
            raise TransactionFailedError(
                f"Transaction {Web3.to_hex(tx_hash)} for {method} failed with status={status}"
            )

        logger.info(f"✓ {method} confirmed in block {receipt['blockNumber']}")
        return receipt

    def decode_event(self, receipt: TxReceipt, event_name: str) -> dict[str, Any] | None:
        """
        Decoded arguments of the first ``event_name`` log in a receipt.

        Returns:
            Event arguments, or None if the receipt carries no such event
        """
        if not hasattr(self.contract.events, event_name):
            raise ValueError(f"Event {event_name} not found in contract ABI")
        event_obj = getattr(self.contract.events, event_name)

        events = event_obj().process_receipt(receipt, errors=DISCARD)
        if not events:
            return None
        return dict(events[0]['args'])

    async def close(self) -> None:
        """Release the provider's HTTP session."""
        disconnect = getattr(self.w3.provider, 'disconnect', None)
        if disconnect is not None:
            await disconnect()
