#!/usr/bin/env python3
"""Tests for OTP issuance and validation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import Web3Exception

from conftest import FakeLedger
from otp_relay.errors import LedgerUnavailableError, MissingEventError
from otp_relay.ledger import LedgerClient
from otp_relay.otp_workflow import OTPWorkflow, _coerce_candidate


@pytest.fixture
def workflow(fake_ledger):
    return OTPWorkflow(fake_ledger)


class TestIssueOTP:
    """Tests for OTPWorkflow.issue_otp."""

    @pytest.mark.asyncio
    async def test_returns_event_value_as_string(self, workflow, fake_ledger):
        otp = await workflow.issue_otp()

        assert otp == "482913"
        assert fake_ledger.calls == [("generateOTP", ())]

    @pytest.mark.asyncio
    async def test_missing_event_is_failure(self, workflow, fake_ledger):
        fake_ledger.emit_events = False

        with pytest.raises(MissingEventError, match="OTPGenerated"):
            await workflow.issue_otp()

    @pytest.mark.asyncio
    async def test_ledger_failure_propagates(self, workflow, fake_ledger):
        fake_ledger.down = True

        with pytest.raises(LedgerUnavailableError):
            await workflow.issue_otp()


class TestCheckOTP:
    """Tests for OTPWorkflow.check_otp, including the single-slot properties."""

    @pytest.mark.asyncio
    async def test_current_otp_validates_once(self, workflow):
        otp = await workflow.issue_otp()

        assert await workflow.check_otp(otp) is True
        assert await workflow.check_otp(otp) is False

    @pytest.mark.asyncio
    async def test_wrong_candidate_fails(self, workflow):
        await workflow.issue_otp()

        assert await workflow.check_otp("000000") is False

    @pytest.mark.asyncio
    async def test_reissue_invalidates_previous(self, workflow):
        first = await workflow.issue_otp()
        second = await workflow.issue_otp()

        assert await workflow.check_otp(first) is False
        assert await workflow.check_otp(second) is True

    @pytest.mark.asyncio
    async def test_candidate_coerced_to_abi_integer(self, workflow, fake_ledger):
        await workflow.issue_otp()

        await workflow.check_otp(" 482913 ")

        assert fake_ledger.calls[-1] == ("validateOTP", (482913,))

    @pytest.mark.parametrize("candidate", ["abc", "", "-5", "12.5", "9" * 80, str(2**256)])
    @pytest.mark.asyncio
    async def test_unencodable_candidate_rejected_without_transaction(self, workflow, fake_ledger, candidate):
        assert await workflow.check_otp(candidate) is False
        assert fake_ledger.calls == []

    @pytest.mark.asyncio
    async def test_string_parameter_passed_through(self):
        ledger = MagicMock()
        ledger.function_input_types.return_value = ["string"]
        ledger.transact = AsyncMock(return_value={"status": 1})
        ledger.decode_event.return_value = {"isValid": True}

        assert await OTPWorkflow(ledger).check_otp("a1b2") is True
        ledger.transact.assert_awaited_once_with("validateOTP", "a1b2")

    @pytest.mark.asyncio
    async def test_missing_event_is_failure(self, workflow, fake_ledger):
        fake_ledger.emit_events = False

        with pytest.raises(MissingEventError, match="OTPValidated"):
            await workflow.check_otp("482913")

    @pytest.mark.asyncio
    async def test_check_before_any_issue(self):
        assert await OTPWorkflow(FakeLedger()).check_otp("482913") is False


class TestCandidateRange:
    """Integer candidates must fit the declared ABI width before anything is sent."""

    @pytest.fixture
    def ledger(self, descriptor):
        """Real AsyncWeb3 contract binding; nothing here touches the network."""
        client = LedgerClient("http://127.0.0.1:8545", descriptor)
        client.transact = AsyncMock()
        return client

    @pytest.mark.parametrize(
        ("abi_type", "largest"),
        [("uint256", 2**256 - 1), ("uint", 2**256 - 1), ("uint8", 255), ("int256", 2**255 - 1), ("int32", 2**31 - 1)]
    )
    def test_largest_value_accepted(self, abi_type, largest):
        assert _coerce_candidate(str(largest), [abi_type]) == largest

        with pytest.raises(ValueError, match="out of range"):
            _coerce_candidate(str(largest + 1), [abi_type])

    def test_bound_matches_web3_encoder(self, ledger):
        ledger.contract.functions.validateOTP(2**256 - 1)

        with pytest.raises(Web3Exception):
            ledger.contract.functions.validateOTP(2**256)

    @pytest.mark.asyncio
    async def test_oversized_candidate_never_reaches_contract(self, ledger):
        assert await OTPWorkflow(ledger).check_otp("9" * 80) is False
        ledger.transact.assert_not_awaited()
