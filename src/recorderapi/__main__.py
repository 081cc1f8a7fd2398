"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

Runs the control service in "backend mode" against a simulated recorder.

    python -m recorderapi                           # 0.0.0.0:8080
    python -m recorderapi --port 9000               # Custom port
    python -m recorderapi -o capture.mkv --start-recording

=============================================================================
"""

import argparse
import logging
import signal
import sys

from . import __version__
from .config import ServiceConfig
from .controller import SimulatedRecorder
from .errors import ConfigError
from .service import ControlService


logger = logging.getLogger("recorderapi")


def setup_logging(log_level: str) -> None:
    """Configure root logging for the CLI."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser(env: ServiceConfig) -> argparse.ArgumentParser:

    parser = argparse.ArgumentParser(
        prog="recorderapi",
        description="Remote control HTTP service for the screen recorder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Endpoints:
  /start   /pause   /save   /cancel   /status   (GET or POST)

Examples:
  python -m recorderapi --port 9000
  python -m recorderapi -o capture.mkv --start-recording
        """,
    )

    parser.add_argument(
        "--host", "-H",
        default=env.host,
        help=f"Address to bind to (default: {env.host})",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=env.port,
        help=f"Port to listen on (default: {env.port})",
    )

    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=env.idle_timeout,
        help="Close connections idle for this many seconds (default: never)",
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=env.log_level.upper(),
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--output-file", "-o",
        default=None,
        help="Output file name reported for recordings",
    )

    parser.add_argument(
        "--start-recording",
        action="store_true",
        help="Start recording before the server accepts connections",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"recorderapi {__version__}",
    )

    return parser


def main(argv=None) -> int:
    """
    Run the service until SIGINT/SIGTERM.

    Returns:
        Process exit status: 0 on clean shutdown, 1 if the server could
        not be created or started.
    """
    try:
        env = ServiceConfig.from_env()
    except ConfigError as e:
        # Logging is configured from the same environment, so not yet set up
        print(f"Error: {e}", file=sys.stderr)
        return 1

    args = build_parser(env).parse_args(argv)
    setup_logging(args.log_level)

    config = ServiceConfig(
        host=args.host,
        port=args.port,
        idle_timeout=args.idle_timeout,
        log_level=args.log_level,
    )

    recorder = SimulatedRecorder(output_file=args.output_file)

    if args.start_recording:
        logger.info("Starting recording automatically ...")
        recorder.start()

    logger.info("Starting HTTP server for backend mode ...")
    try:
        service = ControlService(recorder, config)
    except ConfigError as e:
        logger.error(f"HTTP server error: {e}")
        return 1

    if not service.start():
        return 1

    def shutdown_handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
        service.shutdown()

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    service.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
