"""
Tests for AuctionLedgerReader.

Run with: python -m pytest auction_ledger/tests/test_ledger_reader.py
"""

import unittest

from auction_ledger.infrastructure.auction_data import LedgerStatus
from auction_ledger.infrastructure.errors import AuctionNotFound, DecodeError, RpcUnavailable
from auction_ledger.infrastructure.rpc_client import RpcRetryClient
from auction_ledger.ledger.ledger_reader import AuctionLedgerReader
from auction_ledger.tests.fakes import (
    BOB,
    CONTRACT,
    ETHER,
    FakeLedger,
    details,
    make_config,
    no_sleep,
    run_async,
    struct,
)


class TestAuctionLedgerReader(unittest.TestCase):
    def setUp(self):
        self.ledger = FakeLedger()
        self.ledger.add_auction(0, struct(name="First", current=ETHER, bidder=BOB, bids=2),
                                details(winner=BOB, price=ETHER, remaining=60))
        self.ledger.add_auction(1, struct(name="Second", status=1), details(remaining=0, status=1))
        client = RpcRetryClient(make_config(), web3_instances=[self.ledger.web3()], sleep=no_sleep)
        self.reader = AuctionLedgerReader(client, address=CONTRACT)
    
    def test_total_auction_count(self):
        self.assertEqual(run_async(self.reader.get_total_auction_count()), 2)
    
    def test_auction_struct(self):
        state = run_async(self.reader.get_auction_struct(0))
        
        self.assertEqual(state.name, "First")
        self.assertEqual(state.current_price, ETHER)
        self.assertEqual(state.bidder, BOB)
        self.assertEqual(state.status, LedgerStatus.OPEN)
    
    def test_auction_details(self):
        view = run_async(self.reader.get_auction_details(1))
        
        self.assertEqual(view.seconds_remaining, 0)
        self.assertEqual(view.status, LedgerStatus.CLOSED)
    
    def test_bid_count(self):
        self.assertEqual(run_async(self.reader.get_bid_count(0)), 2)
    
    def test_revert_is_not_found(self):
        with self.assertRaises(AuctionNotFound) as ctx:
            run_async(self.reader.get_auction_struct(5))
        self.assertEqual(ctx.exception.auction_index, 5)
        self.assertEqual(self.ledger.calls["struct:5"], 1)
        
        with self.assertRaises(AuctionNotFound):
            run_async(self.reader.get_auction_details(5))
        with self.assertRaises(AuctionNotFound):
            run_async(self.reader.get_bid_count(5))
    
    def test_malformed_struct(self):
        self.ledger.structs[0] = ("First", ETHER)
        
        with self.assertRaises(DecodeError):
            run_async(self.reader.get_auction_struct(0))
    
    def test_transient_failure_is_retried(self):
        self.ledger.failures["details:0"] = 2
        
        view = run_async(self.reader.get_auction_details(0))
        
        self.assertEqual(view.current_winner, BOB)
        self.assertEqual(self.ledger.calls["details:0"], 3)
    
    def test_exhausted_retries(self):
        self.ledger.failures["count"] = -1
        
        with self.assertRaises(RpcUnavailable) as ctx:
            run_async(self.reader.get_total_auction_count())
        self.assertEqual(ctx.exception.attempts, 3)


if __name__ == "__main__":
    unittest.main(verbosity=2)
