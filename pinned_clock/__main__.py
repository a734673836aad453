"""
Entry point for `python -m pinned_clock`.

Usage:
    python -m pinned_clock CONFIG [--api-url https://api.telegram.org] [--timeout 10] [-v]
"""

import asyncio
import argparse
import logging
import sys

from .client import DEFAULT_API_URL, DEFAULT_TIMEOUT, ApiError, BotClient, EndpointPool
from .config import load_config
from .sync_loop import SyncLoop

logger = logging.getLogger("pinned_clock")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Pinned Clock - keep a pinned message on time")
    parser.add_argument("config", help="Config file with bot tokens, #chat and optional T<offset>")
    parser.add_argument("--api-url", default=DEFAULT_API_URL, help="Bot API base URL")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Request timeout (s)")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def run(args) -> int:
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Bad config: {e}", file=sys.stderr)
        return 1

    tz = config.timezone()
    logger.info(f"Timezone: {tz or 'local'}")
    pool = EndpointPool.from_tokens(config.tokens, api_url=args.api_url)

    async with BotClient(timeout=args.timeout) as client:
        try:
            message_id = await client.resolve_pinned_message(pool[0], config.chat_id)
        except ApiError as e:
            print(f"Cannot resolve pinned message: {e}", file=sys.stderr)
            return 1
        logger.info(f"Chat: {config.chat_id} pinned message {message_id}")

        loop = SyncLoop(client, pool, config.chat_id, message_id, tz)
        await loop.run()

    return 0


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
