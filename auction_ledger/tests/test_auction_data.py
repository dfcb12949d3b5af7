"""
Tests for the auction data classes and the contract ABI registry.

Run with: python -m pytest auction_ledger/tests/test_auction_data.py
"""

import json
import os
import tempfile
import unittest

from auction_ledger.infrastructure.auction_data import (
    AuctionDetails,
    AuctionMetadata,
    Bid,
    LedgerStatus,
    RawAuctionState,
    auction_key,
    format_time_remaining,
    is_zero_address,
    parse_ledger_status,
    to_iso,
)
from auction_ledger.infrastructure.contract_abis import (
    AUCTION_ABI,
    UPDATED_BID_SIGNATURE,
    ContractABIs,
    signature_topic,
)
from auction_ledger.infrastructure.errors import DecodeError
from auction_ledger.tests.fakes import BOB, ETHER, NOW, ZERO, details, struct


class TestContractTuples(unittest.TestCase):
    """Decoding of raw contract return values."""
    
    def test_struct_fields(self):
        state = RawAuctionState.from_contract(struct(name="Dawn", initial=ETHER, current=2 * ETHER,
                                                     bidder=BOB, deadline=NOW, bids=4, status=1))
        
        self.assertEqual(state.name, "Dawn")
        self.assertEqual(state.initial_price, ETHER)
        self.assertEqual(state.current_price, 2 * ETHER)
        self.assertEqual(state.bidder, BOB)
        self.assertEqual(state.deadline, NOW)
        self.assertEqual(state.bid_count, 4)
        self.assertEqual(state.status, LedgerStatus.CLOSED)
        self.assertTrue(state.has_bidder)
    
    def test_zero_bidder(self):
        state = RawAuctionState.from_contract(struct(bidder=ZERO))
        self.assertFalse(state.has_bidder)
    
    def test_short_tuple_is_decode_error(self):
        with self.assertRaises(DecodeError):
            RawAuctionState.from_contract(("Dawn", ETHER))
    
    def test_unknown_status_keeps_raw_value(self):
        state = RawAuctionState.from_contract(struct(status=7))
        view = AuctionDetails.from_contract(details(status=7))
        
        self.assertEqual(state.status, 7)
        self.assertNotIsInstance(state.status, LedgerStatus)
        self.assertEqual(view.status, 7)
        self.assertEqual(state.to_dict()["status"], 7)
    
    def test_known_status_is_enum(self):
        self.assertIs(parse_ledger_status(2), LedgerStatus.PAID)
        self.assertEqual(parse_ledger_status(3), 3)
    
    def test_details_fields(self):
        view = AuctionDetails.from_contract(details(winner=BOB, price=ETHER, remaining=42, status=0))
        
        self.assertEqual(view.current_winner, BOB)
        self.assertEqual(view.current_price, ETHER)
        self.assertEqual(view.seconds_remaining, 42)
        self.assertEqual(view.status, LedgerStatus.OPEN)
    
    def test_amounts_serialize_as_strings(self):
        state = RawAuctionState.from_contract(struct(initial=ETHER, current=3 * ETHER))
        data = state.to_dict()
        
        self.assertEqual(data["initial_price"], str(ETHER))
        self.assertEqual(data["current_price"], str(3 * ETHER))
        self.assertEqual(data["status"], 0)
        json.dumps(data)
    
    def test_bid_amount_serializes_as_string(self):
        bid = Bid(
            id="bid-0xabc-0",
            auction_id=auction_key(1),
            bidder_address=BOB,
            amount=10 ** 30,
            transaction_hash="0xabc",
            observed_at=to_iso(NOW),
        )
        
        self.assertEqual(bid.to_dict()["amount"], str(10 ** 30))
        self.assertFalse(bid.to_dict()["is_winning"])


class TestHelpers(unittest.TestCase):
    def test_auction_key(self):
        self.assertEqual(auction_key(0), "contract-auction-0")
    
    def test_to_iso(self):
        self.assertEqual(to_iso(0), "1970-01-01T00:00:00.000Z")
        self.assertEqual(to_iso(NOW), "2023-11-14T22:13:20.000Z")
        self.assertEqual(to_iso(NOW + 0.25), "2023-11-14T22:13:20.250Z")
    
    def test_zero_address(self):
        self.assertTrue(is_zero_address(ZERO))
        self.assertTrue(is_zero_address(None))
        self.assertFalse(is_zero_address(BOB))
    
    def test_format_time_remaining(self):
        self.assertEqual(format_time_remaining(0), "Auction ended")
        self.assertEqual(format_time_remaining(-5), "Auction ended")
        self.assertEqual(format_time_remaining(59), "0m")
        self.assertEqual(format_time_remaining(3700), "1h 1m")
        self.assertEqual(format_time_remaining(90061), "1d 1h 1m")
    
    def test_metadata_accepts_name_column(self):
        metadata = AuctionMetadata.from_record({"name": "Legacy title", "image_url": "https://x/1.png"})
        
        self.assertEqual(metadata.title, "Legacy title")
        self.assertEqual(metadata.image_url, "https://x/1.png")
        self.assertIsNone(metadata.description)


class TestContractABIs(unittest.TestCase):
    """ABI registry and event topics."""
    
    def setUp(self):
        self.abis = ContractABIs()
    
    def test_builtin_abi(self):
        self.assertEqual(
            sorted(self.abis.list_functions()),
            ["auctions", "getAuctionDetails", "getBidCount", "getTotalAuctions"],
        )
        self.assertIn("UpdatedBid", self.abis.list_events())
    
    def test_event_topic_matches_signature_hash(self):
        self.assertEqual(
            self.abis.get_event_topic("UpdatedBid"),
            signature_topic(UPDATED_BID_SIGNATURE),
        )
    
    def test_unknown_event(self):
        self.assertIsNone(self.abis.get_event_abi("Nope"))
        with self.assertRaises(ValueError):
            self.abis.get_event_topic("Nope")
    
    def test_unknown_contract(self):
        with self.assertRaises(ValueError):
            self.abis.get_abi("Marketplace")
    
    def test_load_foundry_artifact(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "Auction.json")
            with open(path, "w") as f:
                json.dump({"abi": AUCTION_ABI[:2], "bytecode": {"object": "0x"}}, f)
            
            self.assertTrue(self.abis.load_artifact(path))
        
        self.assertEqual(len(self.abis.get_abi()), 2)
    
    def test_load_bare_abi_list(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "abi.json")
            with open(path, "w") as f:
                json.dump(AUCTION_ABI, f)
            
            self.assertTrue(self.abis.load_artifact(path, "Copy"))
        
        self.assertEqual(self.abis.get_abi("Copy"), AUCTION_ABI)
    
    def test_missing_or_empty_artifact_keeps_builtin(self):
        with tempfile.TemporaryDirectory() as tmp:
            empty = os.path.join(tmp, "empty.json")
            with open(empty, "w") as f:
                json.dump({"abi": []}, f)
            
            self.assertFalse(self.abis.load_artifact(os.path.join(tmp, "missing.json")))
            self.assertFalse(self.abis.load_artifact(empty))
        
        self.assertEqual(self.abis.get_abi(), AUCTION_ABI)


if __name__ == "__main__":
    unittest.main(verbosity=2)
