#!/usr/bin/env python3
"""Script-mode driver for the OTP workflow.

Walks the same steps as the browser UI over a text prompt: chain status,
login, transfer details, OTP issuance, OTP validation and the latest
block's details. It talks to the workflow directly rather than over HTTP.
"""

import getpass
import logging
from collections.abc import Callable

from .auth import Authenticator
from .block_summary import BlockSummaryBuilder, format_ether
from .errors import InvalidTransitionError, LedgerError
from .ledger import LedgerClient
from .otp_workflow import OTPWorkflow
from .session import TransferRequest, WorkflowSession

logger = logging.getLogger(__name__)


class InteractiveDriver:
    """Runs one workflow session against the ledger from a terminal."""

    def __init__(
        self,
        ledger: LedgerClient,
        authenticator: Authenticator,
        prompt: Callable[[str], str] = input,
        secret_prompt: Callable[[str], str] = getpass.getpass,
        output: Callable[[str], None] = print
    ) -> None:
        self.ledger = ledger
        self.authenticator = authenticator
        self.workflow = OTPWorkflow(ledger)
        self.summary = BlockSummaryBuilder(ledger)
        self.session = WorkflowSession()
        self.prompt = prompt
        self.secret_prompt = secret_prompt
        self.output = output

    async def show_chain_status(self) -> None:
        """Print the current block number, the accounts and the first balance."""
        self.output(f"Current Block Number: {await self.ledger.block_number()}")

        accounts = await self.ledger.accounts()
        self.output("Available Accounts:")
        for index, account in enumerate(accounts):
            self.output(f"{index}: {account}")

        if accounts:
            balance = await self.ledger.get_balance(accounts[0])
            self.output(f"Balance of {accounts[0]}: {format_ether(balance)} ETH")

    def login(self) -> bool:
        login_id = self.prompt("Login ID: ")
        secret = self.secret_prompt("Password: ")
        if self.session.login(self.authenticator.verify(login_id, secret)):
            self.output("Login successful!")
            return True
        self.output("Invalid login ID or password")
        return False

    def describe_transfer(self) -> bool:
        try:
            transfer = TransferRequest(
                from_account=self.prompt("From account: ").strip(),
                to_account=self.prompt("To account: ").strip(),
                amount=self.prompt("Amount: ").strip(),
                currency=self.prompt("Currency: ").strip(),
            )
        except ValueError as e:
            self.output(str(e))
            return False

        self.session.initiate_transfer(transfer)
        self.output(f"Transfer of {transfer.amount} {transfer.currency} initiated. Please validate the OTP.")
        return True

    async def issue_and_validate(self) -> bool:
        otp = await self.workflow.issue_otp()
        self.session.otp_issued()
        self.output(f"Generated OTP: {otp}")

        candidate = self.prompt("Please enter the OTP to validate: ")
        is_valid = await self.workflow.check_otp(candidate)
        self.session.otp_checked(is_valid)
        self.output(f"Validation result for OTP \"{candidate}\": {'Valid' if is_valid else 'Invalid'}")
        return is_valid

    async def show_latest_block(self) -> None:
        snapshot = await self.summary.latest_block()
        self.output(f"\nDetails of Block Number: {snapshot.number}")
        self.output(f"Hash: {snapshot.hash}")
        self.output(f"Parent Hash: {snapshot.parent_hash}")
        self.output(f"Nonce: {snapshot.nonce}")
        self.output("Transactions:")
        if not snapshot.transactions:
            self.output("  No transactions in this block.")
        for tx in snapshot.transactions:
            self.output(f"  - Hash: {tx.hash}, From: {tx.sender}, To: {tx.recipient}, Value: {tx.value} ETH")

    async def run(self) -> int:
        """
        Run the full session.

        Returns:
            Process exit code: 0 when the OTP validated, 1 otherwise
        """
        try:
            await self.show_chain_status()
            if not self.login() or not self.describe_transfer():
                return 1

            is_valid = await self.issue_and_validate()
            await self.show_latest_block()
            return 0 if is_valid else 1

        except (LedgerError, InvalidTransitionError) as e:
            logger.error(f"Workflow aborted: {e}")
            self.output(f"Error: {e}")
            return 1
