"""
Booking Agent Stack - Command Line
===================================

Builds the booking assistant stack for a locale and provisions it.

Usage:
    python -m booking_agent_stack                          # English prompts, synth to cdk.out/
    python -m booking_agent_stack --lang ko                # Korean prompts + post-processing override
    python -m booking_agent_stack --lang jp --print        # Also print the template
    python -m booking_agent_stack --provisioner http       # Send to BOOKING_PROVISIONING_ENDPOINT
    python -m booking_agent_stack --mock                   # Build and fake the provisioning
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from booking_agent_stack.config import Settings
from booking_agent_stack.errors import BookingStackError
from booking_agent_stack.localization import SUPPORTED_LANGUAGES
from booking_agent_stack.models import ProvisioningResult
from booking_agent_stack.provisioners import PROVISIONER_MAP, get_provisioner
from booking_agent_stack.stack import BookingStackBuilder

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging the same way for every entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="booking_agent_stack",
        description="Build and provision the booking assistant stack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Synthesize the English stack to cdk.out/
  python -m booking_agent_stack

  # Korean prompts with the post-processing override
  python -m booking_agent_stack --lang ko

  # Validate the function schema locally before provisioning
  python -m booking_agent_stack --strict-schema
        """,
    )
    parser.add_argument(
        "--lang",
        choices=sorted(SUPPORTED_LANGUAGES),
        default=None,
        help=f"Prompt locale (default: {settings.lang})",
    )
    parser.add_argument(
        "--stack-name",
        default=None,
        help=f"Stack name (default: {settings.stack_name})",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help=f"Output directory for the synth provisioner (default: {settings.output_dir})",
    )
    parser.add_argument(
        "--provisioner",
        choices=sorted(PROVISIONER_MAP),
        default=None,
        help=f"Provisioner to use (default: {settings.provisioner})",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Build the stack but fake the provisioning step",
    )
    parser.add_argument(
        "--strict-schema",
        action="store_true",
        help="Validate the function schema locally",
    )
    parser.add_argument(
        "--print",
        dest="print_template",
        action="store_true",
        help="Print the resulting template to stdout",
    )
    return parser


async def run(settings: Settings, mock_mode: bool = False, print_template: bool = False) -> ProvisioningResult:
    """Build the stack, then provision it. Errors propagate."""
    builder = BookingStackBuilder(settings)
    stack = await builder.build()

    if print_template:
        print(json.dumps(stack.to_template(), indent=2, ensure_ascii=False))

    provisioner = get_provisioner(settings.provisioner, settings)
    return await provisioner.provision(stack, mock_mode=mock_mode)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = Settings()
    except BookingStackError as e:
        configure_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1
    args = build_parser(settings).parse_args(argv)

    settings = Settings(
        lang=args.lang,
        stack_name=args.stack_name,
        output_dir=args.output_dir,
        provisioner=args.provisioner,
        validate_function_schema=True if args.strict_schema else None,
    )
    configure_logging(settings.log_level)
    logger.debug(f"Settings: {settings.to_dict()}")

    try:
        result = asyncio.run(run(settings, mock_mode=args.mock, print_template=args.print_template))
    except BookingStackError as e:
        logger.error(f"Stack build failed: {e}")
        return 1

    logger.info(f"{result.stack_name}: {result.status.value}, {len(result.handles)} resources")
    if result.output_path:
        logger.info(f"Template: {result.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
