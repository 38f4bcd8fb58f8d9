"""
Command line entry point for operators.

Sends a single notification through a fully wired engine, which is how a
deployment is smoke-tested, and prints the outcome with circuit status.
"""

import argparse
import asyncio
import json
from collections.abc import Sequence

from .config import settings
from .domain.messages import Notification, OtpCode, Promotion, Welcome
from .domain.value_objects import ChannelType, UserContactInfo
from .engine import NotificationEngine
from .infrastructure.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notification-engine", description=__doc__)
    parser.add_argument("--name", default=None, help="Recipient display name")
    parser.add_argument("--phone", default=None, help="National phone number")
    parser.add_argument("--country-code", default=None, help="Country calling code, e.g. +91")
    parser.add_argument("--email", default=None, help="Email address")
    parser.add_argument(
        "--channel",
        choices=[c.value for c in ChannelType],
        default=ChannelType.WHATSAPP.value,
        help="Preferred channel",
    )
    parser.add_argument("--kind", choices=["welcome", "otp", "promotion"], default="welcome")
    parser.add_argument("--otp", default="123456", help="Code for --kind otp")
    parser.add_argument("--title", default="Special offer", help="Title for --kind promotion")
    parser.add_argument("--body", default="", help="Body for --kind promotion")
    return parser


def build_notification(args: argparse.Namespace) -> Notification:
    match args.kind:
        case "otp":
            return OtpCode(code=args.otp)
        case "promotion":
            return Promotion(title=args.title, body=args.body or args.title)
        case _:
            return Welcome()


async def main(argv: Sequence[str] | None = None) -> int:
    """Send one notification and print the result as JSON."""
    args = build_parser().parse_args(argv)
    contact = UserContactInfo(
        email=args.email,
        phone=args.phone,
        country_code=args.country_code,
        preferred_channel=ChannelType(args.channel),
        name=args.name,
    )

    engine = await NotificationEngine.create(settings)
    try:
        if engine.database is not None:
            await engine.database.create_tables()
        result = await engine.send_notification(contact, build_notification(args))
        output = {
            "success": result.success,
            "message": result.message,
            "channel_used": result.channel_used.value if result.channel_used else None,
            "fallback_used": result.fallback_used.value if result.fallback_used else None,
            "error_kind": result.error_kind.value if result.error_kind else None,
            "total_attempts": result.total_attempts,
            "circuits": {
                channel.value: engine.circuit_breaker_status(channel).state.value
                for channel in ChannelType
            },
        }
        print(json.dumps(output, indent=2))
        return 0 if result.success else 1
    finally:
        await engine.aclose()


def run() -> None:
    configure_logging(settings.service_name)
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
