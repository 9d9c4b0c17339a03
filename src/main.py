"""
Main entry point for ConsultaBot.

This module wires together all components and provides both CLI and programmatic interfaces.

Usage:
    # Command line
    python main.py
    python main.py --log-dir /tmp/consultabot --no-animation

    # Programmatic
    from main import run_chatbot
    exit_code = run_chatbot(load_config())
"""

import argparse
import sys
from dataclasses import replace

from api_client import ApiClient
from config import AppConfig, ensure_directories, load_config
from console import TerminalConsole
from controller import FAREWELL, ConversationController
from logging_utils import FileLogSink, get_logger, set_verbose
from state_machine import UnknownStateError

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def create_sink(config: AppConfig) -> FileLogSink:
    """Open the access and error streams in the configured log directory."""
    ensure_directories(config)
    return FileLogSink(
        config.logs.log_dir,
        access_file=config.logs.access_file,
        error_file=config.logs.error_file,
    )


def run_chatbot(config: AppConfig, console=None, sink=None, api: ApiClient | None = None) -> int:
    """
    Run one conversation.

    Args:
        config: Application configuration.
        console: Interactive channel (defaults to the terminal).
        sink: Log sink (defaults to files under config.logs.log_dir).
        api: Provider client (defaults to a new ApiClient).

    Returns:
        Process exit code.
    """
    if console is None:
        console = TerminalConsole(loading_seconds=config.loading_seconds)
    if sink is None:
        sink = create_sink(config)
    if api is None:
        api = ApiClient(config.api, sink)

    controller = ConversationController(console, api, sink)
    try:
        controller.start()
        return EXIT_OK
    except UnknownStateError:
        return EXIT_FATAL
    except EOFError:
        # stdin closed: leave as if the user chose to exit
        console.show()
        console.show(FAREWELL)
        sink.access("Input closed, chatbot finished")
        return EXIT_OK
    except KeyboardInterrupt:
        console.show()
        sink.access("Interrupted by user")
        return EXIT_INTERRUPTED
    finally:
        controller.close()
        sink.close()


def main(argv: list[str] | None = None) -> int:
    """Command-line interface."""
    parser = argparse.ArgumentParser(
        description="ConsultaBot: postal code and weather lookup chatbot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py
    python main.py --log-dir /var/log/consultabot --verbose
        """
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config JSON file"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for access.log and errors.log (default: logs)"
    )
    parser.add_argument(
        "--no-animation",
        action="store_true",
        help="Disable the loading animation"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print diagnostic logging to stderr"
    )

    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.log_dir:
        config = replace(config, logs=replace(config.logs, log_dir=args.log_dir))
    if args.no_animation:
        config = replace(config, loading_seconds=0)

    set_verbose(args.verbose or config.logs.verbose)
    logger.debug("Loaded configuration: %s", config)

    return run_chatbot(config)


if __name__ == "__main__":
    sys.exit(main())
