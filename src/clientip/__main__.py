"""Entry point for serving the demo application as a module."""

import argparse

import uvicorn


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Serve the client IP detection API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Bind host (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Bind port (default: 8080)",
    )

    return parser.parse_args()


def cli_entry() -> None:
    """CLI entry point."""
    args = parse_args()

    # Logging is configured by get_app(); keep uvicorn from overriding it.
    uvicorn.run(
        "clientip.app:get_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_config=None,
    )


if __name__ == "__main__":
    cli_entry()
