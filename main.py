#!/usr/bin/env python3
"""Entry point for the OTP relay.

Starts the HTTP relay server, or with ``--interactive`` runs the OTP
workflow once over a text prompt against the same ledger node.
"""

import argparse
import asyncio
import logging
import os
import sys

# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

import uvicorn

from otp_relay.auth import StaticCredentialAuthenticator
from otp_relay.config import RelayConfig
from otp_relay.interactive import InteractiveDriver
from otp_relay.ledger import LedgerClient
from otp_relay.server import create_app


async def main() -> None:
    """Main entry point for the OTP relay.

    Parses startup arguments, loads configuration from environment,
    builds the ledger client and either serves HTTP or runs script mode.

    Raises:
        SystemExit: On configuration or runtime errors
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="OTP Relay - HTTP relay for an on-chain OTP contract",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  RPC_URL              - Ledger node RPC endpoint (default: http://127.0.0.1:8545)
  CONTRACT_JSON_PATH   - Truffle artifact of OTPAuthentication
  NETWORK_ID           - Network key in the artifact (default: 5777)
  CONTRACT_ADDRESS     - Contract address override
  GAS_MULTIPLIER       - Gas estimate multiplier (default: 2)
  REQUEST_TIMEOUT      - Seconds per ledger call (default: 30)
  RECEIPT_TIMEOUT      - Seconds to wait for a receipt (default: 120)
  PRIVATE_KEY          - Optional local signing key
  HOST / PORT          - HTTP bind address (default: 127.0.0.1:3000)
  CORS_ORIGINS         - Comma-separated allowed origins (default: *)
  LOGIN_ID / LOGIN_SECRET - Demo login credentials
  LOG_LEVEL            - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        default=False,
        help="Run the OTP workflow once over a text prompt instead of serving HTTP"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)
    logger.info(f"=== OTP Relay Starting {'(INTERACTIVE MODE)' if args.interactive else ''} ===")

    try:
        config: RelayConfig = RelayConfig.from_env()
        config.log_config()

        ledger: LedgerClient = LedgerClient.from_config(config)
        authenticator = StaticCredentialAuthenticator(
            config.server.login_id,
            config.server.login_secret
        )

        if args.interactive:
            driver = InteractiveDriver(ledger, authenticator)
            try:
                exit_code = await driver.run()
            finally:
                await ledger.close()
            sys.exit(exit_code)

        app = create_app(ledger, authenticator, cors_origins=config.server.cors_origins)
        server = uvicorn.Server(uvicorn.Config(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level=args.log_level.lower()
        ))
        logger.info(f"Server is running on http://{config.server.host}:{config.server.port}")
        await server.serve()

    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - RPC_URL: Ledger node RPC endpoint")
        logger.error("  - CONTRACT_JSON_PATH: Truffle artifact of the OTP contract")
        logger.error("  - NETWORK_ID: Network key holding the deployed address")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("\nReceived interrupt signal, shutting down gracefully...")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    # Run the main async function
    asyncio.run(main())
