"""
Tests for environment-driven configuration.

Run with: python -m pytest auction_ledger/tests/test_config.py
"""

import io
import os
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

from auction_ledger.config import DEFAULT_AUCTION_ADDRESS, DEFAULT_RPC_URL, Config


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = Config()
        
        self.assertEqual(cfg.rpc_urls, [DEFAULT_RPC_URL])
        self.assertEqual(cfg.chain_id, 11155111)
        self.assertEqual(cfg.auction_address, DEFAULT_AUCTION_ADDRESS)
        self.assertEqual(cfg.rpc_max_attempts, 3)
        self.assertEqual(cfg.rpc_log_max_attempts, 2)
        self.assertEqual(cfg.rpc_retry_delay, 1.0)
        self.assertEqual(cfg.auction_duration, 604800)
        self.assertEqual(cfg.metadata_backend, "none")
        self.assertEqual(cfg.from_block, "earliest")
    
    def test_environment_overrides(self):
        env = {
            "BLOCKCHAIN_RPC_URL": "https://rpc-a.example.com, https://rpc-b.example.com",
            "BLOCKCHAIN_DEPLOY_BLOCK": "5000000",
            "RPC_MAX_ATTEMPTS": "5",
            "AUCTION_CACHE_TTL": "0",
            "METADATA_BACKEND": "YAML",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = Config()
        
        self.assertEqual(cfg.rpc_urls, ["https://rpc-a.example.com", "https://rpc-b.example.com"])
        self.assertEqual(cfg.rpc_url, "https://rpc-a.example.com")
        self.assertEqual(cfg.from_block, 5000000)
        self.assertEqual(cfg.rpc_max_attempts, 5)
        self.assertEqual(cfg.cache_ttl, 0)
        self.assertEqual(cfg.metadata_backend, "yaml")
    
    def test_explorer_links(self):
        with patch.dict(os.environ, {"BLOCKCHAIN_EXPLORER_URL": "https://sepolia.etherscan.io/"}, clear=True):
            cfg = Config()
        
        self.assertEqual(cfg.transaction_url("0xabc"), "https://sepolia.etherscan.io/tx/0xabc")
        self.assertEqual(cfg.address_url("0xdef"), "https://sepolia.etherscan.io/address/0xdef")
    
    def test_display(self):
        env = {"BLOCKCHAIN_CHAIN_ID": "31337", "ENVIRONMENT": "production", "DEBUG": "false"}
        with patch.dict(os.environ, env, clear=True):
            cfg = Config()
        
        output = io.StringIO()
        with redirect_stdout(output):
            cfg.display()
        
        text = output.getvalue()
        self.assertIn("Chain ID: 31337", text)
        self.assertIn("Environment: production", text)
        self.assertIn("Debug: False", text)
        self.assertIn("Supabase key: ✗ Not set", text)
    
    def test_validate(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = Config()
        
        with redirect_stdout(io.StringIO()):
            self.assertTrue(cfg.validate())
            
            cfg.metadata_backend = "supabase"
            self.assertFalse(cfg.validate())
            
            cfg.metadata_backend = "none"
            cfg.rpc_log_max_attempts = 0
            self.assertFalse(cfg.validate())


if __name__ == "__main__":
    unittest.main(verbosity=2)
