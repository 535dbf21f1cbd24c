"""Follow a user's notification feed from the command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from datetime import tzinfo

from feedsync.config import Settings
from feedsync.domain.entities import NotificationState, describe_notification
from feedsync.interfaces.session import NotificationSession
from feedsync.utils import resolve_timezone, time_ago


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the feed watcher."""

    parser = argparse.ArgumentParser(
        description="Connect to the notifications service and print the live feed.",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("FEED_TOKEN"),
        help="Bearer token of the user (default: FEED_TOKEN environment variable)",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Base URL of the notifications API (default: API_URL setting)",
    )
    parser.add_argument(
        "--ws-url",
        default=None,
        help="Websocket endpoint for push frames (default: derived from the API URL)",
    )
    return parser.parse_args()


def render(state: NotificationState, tz: tzinfo | None = None) -> None:
    """Print the current feed."""

    if state.error:
        print(f"! {state.error}")
    print(f"-- {state.unread_count} unread --")
    for notification in state.notifications:
        marker = " " if notification.read else "*"
        print(
            f"{marker} {describe_notification(notification)}"
            f" ({time_ago(notification.created_at, tz=tz)})"
        )


async def watch(settings: Settings, token: str) -> None:
    session = NotificationSession(settings, token)
    tz = resolve_timezone(settings.app_timezone)
    session.subscribe(lambda state: render(state, tz))
    async with session:
        await asyncio.Event().wait()


def main() -> None:
    """Run the watcher until interrupted."""

    args = parse_args()
    if not args.token:
        raise SystemExit("A bearer token is required (--token or FEED_TOKEN).")

    overrides = {
        key: value
        for key, value in (("api_url", args.api_url), ("ws_url", args.ws_url))
        if value
    }
    try:
        settings = Settings(**overrides)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(watch(settings, args.token))
    except KeyboardInterrupt:
        print("Stopped.")


if __name__ == "__main__":
    main()
