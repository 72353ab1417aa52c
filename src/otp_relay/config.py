#!/usr/bin/env python3
"""Configuration management for the OTP relay.

This module provides type-safe configuration dataclasses with validation
for the relay server. Configuration is loaded from environment variables
with defaults matching a local Ganache/Truffle development setup.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from web3 import Web3

# Get logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Configuration for the ledger node and the OTP contract.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint of the ledger node
        contract_json_path: Path to the Truffle build artifact of the contract
        network_id: Key under ``networks`` in the artifact holding the address
        contract_address: Optional address overriding the artifact's one
        private_key: Optional local signing key (unlocked node account otherwise)
    """

    rpc_url: str = "http://127.0.0.1:8545"
    contract_json_path: Path = Path("build/contracts/OTPAuthentication.json")
    network_id: str = "5777"
    contract_address: str | None = None
    private_key: str | None = None

    def __post_init__(self) -> None:
        """Validate ledger configuration."""
        if not self.rpc_url:
            raise ValueError("RPC URL is required (RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )

        if not self.network_id:
            raise ValueError("Network ID is required (NETWORK_ID)")

        if self.contract_address is not None:
            if not Web3.is_address(self.contract_address):
                raise ValueError(
                    f"Invalid contract address: {self.contract_address}"
                )
            checksummed = Web3.to_checksum_address(self.contract_address)
            if checksummed != self.contract_address:
                # Use object.__setattr__ since dataclass is frozen
                object.__setattr__(self, 'contract_address', checksummed)

        if self.private_key:
            # 64 hex chars, optionally with 0x prefix
            key = self.private_key.removeprefix('0x')

            if len(key) != 64:
                raise ValueError(
                    f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
                )

            try:
                int(key, 16)
            except ValueError:
                raise ValueError(
                    "Invalid private key format. Must be hexadecimal"
                ) from None


@dataclass(frozen=True, slots=True)
class TransactionConfig:
    """Configuration for transaction submission and ledger call bounds."""
    gas_multiplier: float = 2.0  # applied to every gas estimate
    request_timeout: int = 30  # seconds per ledger call
    receipt_timeout: int = 120  # seconds to wait for a mined receipt

    def __post_init__(self) -> None:
        """Validate transaction configuration."""
        if self.gas_multiplier < 1:
            raise ValueError(f"Gas multiplier must be at least 1, got {self.gas_multiplier}")
        if self.gas_multiplier > 10:
            raise ValueError(f"Gas multiplier too high (max 10), got {self.gas_multiplier}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")

        if self.receipt_timeout <= 0:
            raise ValueError(f"Receipt timeout must be positive, got {self.receipt_timeout}")
        if self.receipt_timeout > 600:
            raise ValueError(f"Receipt timeout too long (max 600s), got {self.receipt_timeout}")


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Configuration for the HTTP facade.

    Attributes:
        host: Interface to bind
        port: TCP port to bind
        cors_origins: Allowed CORS origins (``*`` for any)
        login_id: Demo login ID checked by the default authenticator
        login_secret: Demo password checked by the default authenticator
    """

    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: tuple[str, ...] = ("*",)
    login_id: str = "Admin"
    login_secret: str = "VVIT"

    def __post_init__(self) -> None:
        """Validate server configuration."""
        if not 0 < self.port < 65536:
            raise ValueError(f"Port must be between 1 and 65535, got {self.port}")
        if not self.cors_origins:
            raise ValueError("At least one CORS origin is required (CORS_ORIGINS)")
        if not self.login_id or not self.login_secret:
            raise ValueError("LOGIN_ID and LOGIN_SECRET must not be empty")


@dataclass(frozen=True, slots=True)
class RelayConfig:
    """Main configuration for the OTP relay.

    Attributes:
        ledger: Ledger node and contract settings
        transactions: Gas policy and ledger call timeouts
        server: HTTP facade settings
    """

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    transactions: TransactionConfig = field(default_factory=TransactionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Load configuration from environment variables.

        Returns:
            RelayConfig instance with loaded values

        Raises:
            ValueError: If environment variables are invalid
        """
        ledger_config = LedgerConfig(
            rpc_url=os.environ.get("RPC_URL", "http://127.0.0.1:8545"),
            contract_json_path=Path(
                os.environ.get("CONTRACT_JSON_PATH", "build/contracts/OTPAuthentication.json")
            ),
            network_id=os.environ.get("NETWORK_ID", "5777"),
            contract_address=os.environ.get("CONTRACT_ADDRESS") or None,
            private_key=os.environ.get("PRIVATE_KEY") or None,
        )

        try:
            gas_multiplier = float(os.environ.get("GAS_MULTIPLIER", "2"))
            request_timeout = int(os.environ.get("REQUEST_TIMEOUT", "30"))
            receipt_timeout = int(os.environ.get("RECEIPT_TIMEOUT", "120"))
            port = int(os.environ.get("PORT", "3000"))
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting: {e}") from None

        transaction_config = TransactionConfig(
            gas_multiplier=gas_multiplier,
            request_timeout=request_timeout,
            receipt_timeout=receipt_timeout,
        )

        origins = tuple(
            origin.strip()
            for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        )

        server_config = ServerConfig(
            host=os.environ.get("HOST", "127.0.0.1"),
            port=port,
            cors_origins=origins,
            login_id=os.environ.get("LOGIN_ID", "Admin"),
            login_secret=os.environ.get("LOGIN_SECRET", "VVIT"),
        )

        return cls(
            ledger=ledger_config,
            transactions=transaction_config,
            server=server_config,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("OTP Relay Configuration")
        logger.info("=" * 60)

        logger.info("Ledger:")
        logger.info(f"  RPC URL: {self.ledger.rpc_url}")
        logger.info(f"  Contract artifact: {self.ledger.contract_json_path}")
        logger.info(f"  Network ID: {self.ledger.network_id}")
        if self.ledger.contract_address:
            logger.info(f"  Contract override: {self.ledger.contract_address}")
        logger.info(f"  Signer: {'LOCAL KEY' if self.ledger.private_key else 'NODE ACCOUNT'}")

        logger.info("Transactions:")
        logger.info(f"  Gas Multiplier: {self.transactions.gas_multiplier}")
        logger.info(f"  Request Timeout: {self.transactions.request_timeout} seconds")
        logger.info(f"  Receipt Timeout: {self.transactions.receipt_timeout} seconds")

        logger.info("Server:")
        logger.info(f"  Bind: {self.server.host}:{self.server.port}")
        logger.info(f"  CORS Origins: {', '.join(self.server.cors_origins)}")
        logger.info("  Login Secret: [CONFIGURED]")

        logger.info("=" * 60)
