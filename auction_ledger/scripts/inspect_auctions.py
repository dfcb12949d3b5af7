"""
Command line inspection of the auction contract.

Examples:
    python -m auction_ledger.scripts.inspect_auctions list
    python -m auction_ledger.scripts.inspect_auctions show 3
    python -m auction_ledger.scripts.inspect_auctions bids 3
    python -m auction_ledger.scripts.inspect_auctions stats
    python -m auction_ledger.scripts.inspect_auctions health
    python -m auction_ledger.scripts.inspect_auctions config
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional

from auction_ledger.config import config
from auction_ledger.infrastructure.auction_data import format_time_remaining
from auction_ledger.infrastructure.errors import AuctionNotFound
from auction_ledger.ledger.auction_service import AuctionService, create_auction_service

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect on-chain auctions")
    parser.add_argument("--rpc-url", type=str, help="RPC endpoint(s), comma separated")
    parser.add_argument("--address", type=str, help="Auction contract address")
    parser.add_argument("--timeout", type=float, help="Overall timeout in seconds")
    parser.add_argument("--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="List every auction")
    show = commands.add_parser("show", help="Show one auction")
    show.add_argument("index", type=int, help="Auction index")
    bids = commands.add_parser("bids", help="Show the bid history of an auction")
    bids.add_argument("index", type=int, help="Auction index")
    commands.add_parser("stats", help="Contract-wide statistics")
    commands.add_parser("health", help="Check RPC connectivity")
    commands.add_parser("config", help="Show and validate the active configuration")
    return parser


def _print_json(payload: Any):
    print(json.dumps(payload, indent=2))


async def run(args: argparse.Namespace, service: Optional[AuctionService] = None) -> int:
    """Execute one command and return the process exit code."""
    if args.rpc_url:
        config.rpc_urls = [url.strip() for url in args.rpc_url.split(",") if url.strip()]
    if args.address:
        config.auction_address = args.address
    
    if args.command == "config":
        config.display()
        return 0 if config.validate() else 1
    
    if service is None:
        if not config.validate():
            return 1
        service = create_auction_service(config)
    
    try:
        if args.command == "list":
            auctions = await service.list_auctions(timeout=args.timeout)
            _print_json([auction.to_dict() for auction in auctions])
        
        elif args.command == "show":
            auction = await service.get_auction(args.index, timeout=args.timeout)
            payload = auction.to_dict()
            payload["time_remaining"] = format_time_remaining(auction.seconds_remaining)
            _print_json(payload)
        
        elif args.command == "bids":
            bids = await service.get_bid_history(args.index, timeout=args.timeout)
            _print_json([bid.to_dict() for bid in bids])
        
        elif args.command == "stats":
            stats = await service.get_stats(timeout=args.timeout)
            _print_json(stats.to_dict())
        
        elif args.command == "health":
            health = await service.health_check()
            _print_json(health)
            return 0 if health["healthy"] else 1
        
        return 0
    
    except AuctionNotFound as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    
    finally:
        await service.close()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    
    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
