"""Generate a batch of signed bags and print their QR payloads."""

# meta: script: bag-batch-generate

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue signed Snapbag bag codes")
    parser.add_argument("--name", required=True, help="Human readable batch name.")
    parser.add_argument("--quantity", type=int, required=True, help="Number of bags to issue.")
    parser.add_argument("--description", default=None, help="Optional batch description.")
    parser.add_argument("--slug", default=None, help="Explicit batch slug (derived from the name by default).")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write JSON lines to this file instead of stdout.",
    )
    return parser.parse_args()


async def _generate(args: argparse.Namespace) -> list[dict[str, str]]:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from snapbag_api.db.session import async_session  # type: ignore import-position
    from snapbag_api.services.scans import BagBatchService  # type: ignore import-position

    async with async_session() as session:
        batch, bags = await BagBatchService(session).generate_batch(
            args.name,
            args.quantity,
            args.description,
            slug=args.slug,
        )
    logger.info("Bag batch ready", batch=batch.slug, quantity=len(bags))
    return [{"bagId": bag.bag_id, "hmacSignature": bag.hmac_signature} for bag in bags]


def main() -> None:
    args = parse_args()
    payloads = asyncio.run(_generate(args))
    lines = "\n".join(json.dumps(payload) for payload in payloads) + "\n"
    if args.output is not None:
        args.output.write_text(lines, encoding="utf-8")
        logger.info("Wrote QR payloads", path=str(args.output), count=len(payloads))
    else:
        sys.stdout.write(lines)


if __name__ == "__main__":
    main()
