"""
Tests for the inspect_auctions command line script.

Run with: python -m pytest auction_ledger/tests/test_cli.py
"""

import io
import json
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import AsyncMock, patch

from auction_ledger.infrastructure.auction_data import AuctionDetails, AuctionStats, RawAuctionState
from auction_ledger.infrastructure.errors import AuctionNotFound
from auction_ledger.ledger.projector import AuctionProjector
from auction_ledger.scripts.inspect_auctions import build_parser, run
from auction_ledger.tests.fakes import CONTRACT, NOW, details, make_config, run_async, struct


def invoke(argv, service):
    """Run a command against a mocked service; returns (exit code, stdout, stderr)."""
    args = build_parser().parse_args(argv)
    stdout, stderr = io.StringIO(), io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        code = run_async(run(args, service=service))
    return code, stdout.getvalue(), stderr.getvalue()


def sample_auction(index=0, remaining=3600):
    projector = AuctionProjector(contract_address=CONTRACT)
    state = RawAuctionState.from_contract(struct(name=f"Lot {index}", deadline=NOW + remaining))
    return projector.project(index, state, AuctionDetails.from_contract(details(remaining=remaining)), NOW)


class TestInspectAuctions(unittest.TestCase):
    def setUp(self):
        self.service = AsyncMock()
    
    def test_list(self):
        self.service.list_auctions.return_value = [sample_auction(0), sample_auction(1)]
        
        code, out, _ = invoke(["list"], self.service)
        
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual([a["id"] for a in payload], ["contract-auction-0", "contract-auction-1"])
        self.assertEqual(payload[0]["status"], "active")
        self.service.close.assert_awaited_once()
    
    def test_show_adds_countdown(self):
        self.service.get_auction.return_value = sample_auction(2, remaining=3700)
        
        code, out, _ = invoke(["--timeout", "5", "show", "2"], self.service)
        
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["time_remaining"], "1h 1m")
        self.service.get_auction.assert_awaited_once_with(2, timeout=5.0)
    
    def test_missing_auction_exit_code(self):
        self.service.get_bid_history.side_effect = AuctionNotFound(9)
        
        code, out, err = invoke(["bids", "9"], self.service)
        
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("Auction 9 not found", err)
        self.service.close.assert_awaited_once()
    
    def test_stats(self):
        self.service.get_stats.return_value = AuctionStats(3, 1, 2, "1.5", CONTRACT)
        
        code, out, _ = invoke(["stats"], self.service)
        
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["total_volume"], "1.5")
    
    def test_unhealthy_exit_code(self):
        self.service.health_check.return_value = {
            "healthy": False, "block_number": None, "latency_ms": 3, "endpoint": None,
        }
        
        code, _, _ = invoke(["health"], self.service)
        
        self.assertEqual(code, 1)
    
    def test_subcommand_required(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args([])


class TestConfigCommand(unittest.TestCase):
    """Commands that read the active configuration."""
    
    def test_config_shows_settings(self):
        cfg = make_config(chain_id=31337)
        
        with patch("auction_ledger.scripts.inspect_auctions.config", cfg):
            code, out, _ = invoke(["config"], None)
        
        self.assertEqual(code, 0)
        self.assertIn("Chain ID: 31337", out)
        self.assertIn(f"Auction contract: {CONTRACT}", out)
    
    def test_config_reports_invalid_settings(self):
        cfg = make_config(auction_address="")
        
        with patch("auction_ledger.scripts.inspect_auctions.config", cfg):
            code, out, _ = invoke(["config"], None)
        
        self.assertEqual(code, 1)
        self.assertIn("BLOCKCHAIN_AUCTION_ADDRESS is required", out)
    
    def test_invalid_config_stops_before_reading(self):
        cfg = make_config(rpc_urls=[])
        
        with patch("auction_ledger.scripts.inspect_auctions.config", cfg), \
                patch("auction_ledger.scripts.inspect_auctions.create_auction_service") as factory:
            code, out, _ = invoke(["list"], None)
        
        self.assertEqual(code, 1)
        self.assertIn("BLOCKCHAIN_RPC_URL is required", out)
        factory.assert_not_called()


if __name__ == "__main__":
    unittest.main(verbosity=2)
