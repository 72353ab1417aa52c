#!/usr/bin/env python3
"""Tests for the block details view-model and its rendering."""

from otp_relay.models import AccountBalance, BlockSnapshot, TransactionSummary
from otp_relay.views import BlockDetailsView, render_block_details, render_index


def make_snapshot(**overrides) -> BlockSnapshot:
    fields = {
        "number": "3",
        "hash": "0x" + "33" * 32,
        "parent_hash": "0x" + "22" * 32,
        "nonce": "0",
        "gas_used": "43210",
        "timestamp": "1700000000",
        "transactions": (),
        "accounts": (
            AccountBalance(address="0x627306090abaB3A6e1400e9345bC60c78a8BEf57", balance="99.5"),
        ),
    }
    fields.update(overrides)
    return BlockSnapshot(**fields)


class TestBlockDetailsView:
    """Tests for BlockDetailsView.build."""

    def test_build_formats_time_and_charts(self):
        view = BlockDetailsView.build(make_snapshot(), total_blocks=3)

        assert view.block_time == "2023-11-14 22:13:20 UTC"
        assert view.gas_chart.values == (43210.0,)
        assert view.balance_chart.labels == ("0x627306090abaB3A6e1400e9345bC60c78a8BEf57",)
        assert view.balance_chart.values == (99.5,)
        assert view.blocks_chart.to_dict() == {"labels": ["Total Blocks"], "values": [3.0]}


class TestRendering:
    """Tests for the Jinja2 templates."""

    def test_renders_block_fields(self):
        html = render_block_details(BlockDetailsView.build(make_snapshot(), total_blocks=3))

        assert "Details of Block Number: 3" in html
        assert "Gas Used: 43210" in html
        assert "No transactions in this block." in html
        assert "Balance: 99.5 ETH" in html

    def test_renders_transactions(self):
        tx = TransactionSummary(
            hash="0x" + "aa" * 32,
            sender="0x627306090abaB3A6e1400e9345bC60c78a8BEf57",
            recipient=None,
            value="1.25"
        )
        html = render_block_details(BlockDetailsView.build(make_snapshot(transactions=(tx,)), 3))

        assert "Value: 1.25 ETH" in html
        assert "(contract creation)" in html
        assert "No transactions in this block." not in html

    def test_markup_in_data_is_escaped(self):
        """Node-supplied strings must not be able to inject markup."""
        hostile = "<script>alert(1)</script>"
        html = render_block_details(BlockDetailsView.build(make_snapshot(hash=hostile), 3))

        assert hostile not in html
        assert "&lt;script&gt;" in html

    def test_index_has_workflow_sections(self):
        html = render_index()

        for element in ("loginContainer", "transferContainer", "otpContainer", "blockDetailsContainer"):
            assert f'id="{element}"' in html
