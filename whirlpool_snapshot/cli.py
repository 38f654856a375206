#!/usr/bin/env python3
"""
Command-line interface for whirlpool pool snapshots.

Usage:
    python -m whirlpool_snapshot.cli
    python -m whirlpool_snapshot.cli --pool-address <POOL> --pool-address <POOL>
    python -m whirlpool_snapshot.cli --lenient-pools --lenient-tick-arrays --no-mint-data
    python -m whirlpool_snapshot.cli --legacy
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import ujson
from solders.pubkey import Pubkey

from .aggregation import FetchPolicy, PoolStateAggregator, fetch_pool_states
from .batchers import AggregationError, BatchConfig, BatchError, RpcAccountReader
from .config import ConfigError, get_config
from .pda import WHIRLPOOL_PROGRAM_ID

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Snapshot whirlpool pool state from a Solana RPC node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # SOL/USDC with mint data
  python -m whirlpool_snapshot.cli

  # Several pools, skipping the ones that fail
  python -m whirlpool_snapshot.cli --pool-address <A> --pool-address <B> --lenient-pools

  # One request per account, current tick array only
  python -m whirlpool_snapshot.cli --legacy
        """,
    )
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint (default: SOLANA_RPC_URL)")
    parser.add_argument(
        "--pool-address",
        action="append",
        dest="pool_addresses",
        help="Pool to snapshot, may be repeated (default: DEFAULT_POOLS)",
    )
    parser.add_argument(
        "--lenient-pools",
        action="store_true",
        help="Skip pools whose account or mints are missing instead of failing",
    )
    parser.add_argument(
        "--lenient-tick-arrays",
        action="store_true",
        help="Skip pools whose left or right tick array is missing instead of failing",
    )
    parser.add_argument("--no-mint-data", action="store_true", help="Do not fetch token mints")
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Use the single-pool path (one read per account, current tick array only)",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    return parser


def snapshot(
    reader,
    pool_addresses: List[str],
    args,
    config: Optional[BatchConfig] = None,
    program_id: Pubkey = WHIRLPOOL_PROGRAM_ID,
) -> Dict[str, Any]:
    """Run one snapshot and return it as a JSON-ready dict."""
    fetch_mint_data = not args.no_mint_data

    if args.legacy:
        states = fetch_pool_states(
            reader, pool_addresses, fetch_mint_data=fetch_mint_data, program_id=program_id
        )
        return {"pools": [state.to_dict() for state in states], "skipped": []}

    policy = FetchPolicy.from_flags(
        require_all_accounts=not args.lenient_pools,
        require_all_tick_arrays=not args.lenient_tick_arrays,
    )
    aggregator = PoolStateAggregator(reader, config=config, program_id=program_id)
    result = aggregator.aggregate(pool_addresses, policy=policy, fetch_mint_data=fetch_mint_data)
    return {
        "pools": [state.to_dict() for state in result.pool_states],
        "skipped": [
            {
                "index": skipped.index,
                "address": str(skipped.address),
                "stage": skipped.skip_reason.stage,
                "side": skipped.skip_reason.side,
                "error": skipped.skip_reason.error,
            }
            for skipped in result.skipped
        ],
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ConfigError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1

    solana = config.solana
    rpc_url = args.rpc_url or solana.SOLANA_RPC_URL
    pool_addresses = args.pool_addresses or solana.DEFAULT_POOLS

    logger.info(f"🚀 Snapshotting {len(pool_addresses)} pools from {rpc_url}")
    batch_config = solana.get_batch_config()
    reader = RpcAccountReader(rpc_url, commitment=solana.SOLANA_COMMITMENT, config=batch_config)
    try:
        output = snapshot(reader, pool_addresses, args, config=batch_config, program_id=solana.program_id)
    except AggregationError as e:
        logger.error(f"❌ Snapshot failed at stage {e.stage}: {e}")
        print(ujson.dumps({"error": e.to_dict()}), file=sys.stderr)
        return 1
    except BatchError as e:
        logger.error(f"❌ Snapshot failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("⏹️  Snapshot interrupted by user")
        return 130
    finally:
        reader.close()

    print(ujson.dumps(output, indent=args.indent))
    if output["skipped"]:
        logger.warning(f"⚠️  {len(output['skipped'])} pools skipped")
    else:
        logger.info(f"✅ Snapshot of {len(output['pools'])} pools complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
