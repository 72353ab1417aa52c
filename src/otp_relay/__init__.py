"""
OTP Relay package.

HTTP relay and demo UI for an on-chain OTP contract on a local ledger node.
"""

from .auth import Authenticator, StaticCredentialAuthenticator
from .block_summary import BlockSummaryBuilder
from .config import RelayConfig
from .ledger import LedgerClient
from .models import BlockSnapshot
from .otp_workflow import OTPWorkflow
from .server import create_app

__all__ = [
    "Authenticator",
    "BlockSnapshot",
    "BlockSummaryBuilder",
    "LedgerClient",
    "OTPWorkflow",
    "RelayConfig",
    "StaticCredentialAuthenticator",
    "create_app",
]
__version__ = "0.1.0"
