"""
Tests for the sealbid command line.
"""

import pytest
from click.testing import CliRunner

from sealbid.cli.main import cli
from sealbid.core.auction import commit


@pytest.fixture
def runner():
    return CliRunner()


class TestCommitCommands:
    """Tests for commit/verify."""

    def test_commit(self, runner):
        result = runner.invoke(cli, ["commit", "300"])
        assert result.exit_code == 0
        assert result.output.strip() == "0x" + commit(300).hex()

    def test_commit_out_of_range(self, runner):
        result = runner.invoke(cli, ["commit", "--", "-1"])
        assert result.exit_code != 0

    def test_verify_match(self, runner):
        digest = "0x" + commit(42).hex()
        result = runner.invoke(cli, ["verify", "42", digest])
        assert result.exit_code == 0
        assert "matches" in result.output

    def test_verify_mismatch(self, runner):
        digest = "0x" + commit(42).hex()
        result = runner.invoke(cli, ["verify", "43", digest])
        assert result.exit_code == 1
        assert "does not match" in result.output

    def test_verify_bad_hex(self, runner):
        result = runner.invoke(cli, ["verify", "42", "zz"])
        assert result.exit_code != 0


class TestOtherCommands:
    """Tests for keygen/config/demo."""

    def test_keygen(self, runner):
        result = runner.invoke(cli, ["keygen"])
        assert result.exit_code == 0
        assert "Address:" in result.output
        assert "Private key:" in result.output

    def test_config(self, runner):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "minimum_deposit" in result.output
        assert "log_file:" in result.output

    def test_demo(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", "120,300,250"])
        assert result.exit_code == 0, result.output
        assert "pays 250" in result.output
        assert "Asset now owned by winner" in result.output
        assert "Demo complete" in result.output

    def test_demo_with_tampered_reveal(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", "120,300,250", "--tamper", "1"])
        assert result.exit_code == 0, result.output
        assert "reveal rejected" in result.output
        assert "pays 120" in result.output
        # the tampering bidder still gets its deposit back
        claims = result.output.split("Claims...")[1]
        assert "✗" not in claims

    def test_demo_bad_bids(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", "a,b"])
        assert result.exit_code != 0

    def test_demo_negative_bid(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", "-5,3"])
        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)
        assert "--bids" in result.output

    def test_demo_bid_above_u128(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", f"1,{2**128}"])
        assert result.exit_code == 2
        assert "--bids" in result.output

    def test_demo_short_deadline_with_tamper(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", "1,2,3", "--deadline", "2", "--tamper", "2"])
        assert result.exit_code == 0, result.output
        assert "AUCTION_ALREADY_COMPLETE" not in result.output
        assert "reveal rejected" in result.output
        assert "pays 1" in result.output
        assert "Demo complete" in result.output

    def test_demo_tamper_index_out_of_range(self, runner):
        result = runner.invoke(cli, ["demo", "--bids", "1,2", "--tamper", "5"])
        assert result.exit_code == 2
        assert "SEALED-BID" not in result.output

    def test_demo_zero_deadline(self, runner):
        result = runner.invoke(cli, ["demo", "--deadline", "0"])
        assert result.exit_code == 2
