"""
CLI entry point for the shared finance MCP server.
"""

import argparse
import asyncio
import logging
import sys

from shared_finance_mcp.config import Settings
from shared_finance_mcp.server import run_server


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    settings = Settings.from_env()
    overrides = {
        "base_url": args.base_url,
        "access_token": args.token,
        "timeout": args.timeout,
        "user_id": args.user_id,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=overrides) if overrides else settings


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Shared Finance MCP Server - Expose shared finance data through MCP"
    )
    parser.add_argument(
        "--base-url",
        help="Backend API base URL (default: FINANCE_API_BASE_URL or http://localhost:8080/api/v1)",
    )
    parser.add_argument(
        "--token",
        help="Access token for the backend (default: FINANCE_API_TOKEN)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds (default: FINANCE_API_TIMEOUT or 30)",
    )
    parser.add_argument(
        "--user-id",
        help="User the tools act for (default: FINANCE_USER_ID)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,  # MCP uses stdout for protocol, so log to stderr
    )

    # Run the server
    try:
        asyncio.run(run_server(build_settings(args)))
    except KeyboardInterrupt:
        logging.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logging.exception(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
