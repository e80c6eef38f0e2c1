# =============================================================================
# Mailbox Main Application
# =============================================================================
# The Textual application behind `mailbox tui` and the argparse entry point
# for every `mailbox` command.
#
# The app itself is thin: it loads nothing and owns nothing but the main
# screen, which opens the store and drives the two panes. Logs go to a file
# in the XDG state directory so they never draw over the TUI.
# =============================================================================

import argparse
import logging
import sys

from textual.app import App

from mailbox_tui import __app_name__, __version__
from mailbox_tui.cli import COMMANDS, make_console, make_formatter, parse_state_choice
from mailbox_tui.config import Config, ConfigError, ensure_directories, print_paths
from mailbox_tui.core import MailboxPath, State
from mailbox_tui.rendering import TimestampFormat
from mailbox_tui.storage import StorageError
from mailbox_tui.ui.screens import MainScreen

logger = logging.getLogger(__name__)

STATE_CHOICES = ["unread", "read", "archived", "unarchived", "all"]


class MailboxApp(App):
    """
    The mailbox TUI.

    Attributes:
        config: The loaded application configuration.
        TITLE: Window title shown in terminal.
        SUB_TITLE: Subtitle shown in header.
    """

    TITLE = "Mailbox"
    SUB_TITLE = "Local message inbox"

    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        config: Config | None = None,
        initial_mailbox: MailboxPath | None = None,
        initial_states: set[State] | None = None,
        **screen_options,
    ) -> None:
        """
        Initialize the application.

        Args:
            config: Pre-loaded configuration. Defaults are used if omitted.
            initial_mailbox: Mailbox to select on startup.
            initial_states: Message states to show on startup.
            screen_options: Passed through to MainScreen (db_path, formatter).
        """
        super().__init__()
        self.config = config or Config()
        self._initial_mailbox = initial_mailbox
        self._initial_states = initial_states
        self._screen_options = screen_options

    async def on_mount(self) -> None:
        await self.push_screen(MainScreen(
            self.config,
            initial_mailbox=self._initial_mailbox,
            initial_states=self._initial_states,
            **self._screen_options,
        ))


# =============================================================================
# CLI Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Mailbox: a local inbox for messages from scripts and services",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )
    parser.add_argument(
        "--color",
        dest="color",
        action="store_true",
        default=None,
        help="Always color output",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        help="Never color output",
    )
    parser.add_argument(
        "--timestamp-format",
        choices=[f.value for f in TimestampFormat],
        help="How to show timestamps (default: relative on a terminal, local otherwise)",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    add = commands.add_parser("add", help="Add a message")
    add.add_argument("mailbox", type=MailboxPath, help="Mailbox, e.g. backups/nas")
    add.add_argument("content", help="Message text")
    add.add_argument("-s", "--state", choices=[s.value for s in State], help="Initial state")

    import_ = commands.add_parser("import", help="Add messages read from stdin")
    import_.add_argument(
        "--format",
        choices=["tsv", "json"],
        default="tsv",
        help="Line format: mailbox<TAB>content[<TAB>state], or JSON objects",
    )

    view = commands.add_parser("view", help="Print messages")
    add_filter_arguments(view, default_state="unread")
    view.add_argument(
        "-f", "--full-output",
        action="store_true",
        help="Print every message in full, even on a terminal",
    )

    for name, help_text in [
        ("read", "Mark unread messages as read"),
        ("archive", "Archive unread and read messages"),
        ("clear", "Delete archived messages"),
    ]:
        command = commands.add_parser(name, help=help_text)
        command.add_argument("-m", "--mailbox", type=MailboxPath, help="Only this mailbox")

    tui = commands.add_parser("tui", help="Browse messages interactively (default)")
    add_filter_arguments(tui, default_state="unread")

    config = commands.add_parser("config", help="Manage the config file")
    config.add_argument("config_command", choices=["locate", "edit", "init"])

    server = commands.add_parser("server", help="Serve the local database over HTTP")
    server.add_argument("--host", default="127.0.0.1", help="Address to bind (default: 127.0.0.1)")
    server.add_argument("--port", type=int, default=8080, help="Port to bind (default: 8080)")
    server.add_argument("--token", help="Required bearer token (default: $MAILBOX_AUTH_TOKEN)")

    return parser


def add_filter_arguments(parser: argparse.ArgumentParser, default_state: str) -> None:
    parser.add_argument("-m", "--mailbox", type=MailboxPath, help="Only this mailbox and its children")
    parser.add_argument(
        "-s", "--state",
        choices=STATE_CHOICES,
        default=default_state,
        help=f"Which messages to show (default: {default_state})",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    args = build_parser().parse_args(argv)
    if args.command is None:
        args.command = "tui"
        args.mailbox = None
        args.state = "unread"
    return args


def setup_logging(debug: bool) -> None:
    """Send log records to the log file in the XDG state directory."""
    ensure_directories()
    handler = logging.FileHandler(Config.log_file_path(), encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)


def run_tui(args: argparse.Namespace, config: Config) -> int:
    formatter = make_formatter(args, make_console(args.color)).full_output()
    app = MailboxApp(
        config,
        initial_mailbox=args.mailbox,
        initial_states=parse_state_choice(args.state) or set(State),
        formatter=formatter,
    )
    app.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for `mailbox`.

    This function:
        1. Parses command-line arguments
        2. Handles --paths
        3. Loads configuration
        4. Runs the subcommand, or the TUI when none is given

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_args(argv)

    if args.paths:
        print_paths()
        return 0

    try:
        setup_logging(args.debug)
    except OSError as e:
        print(f"Error: Failed to open log file: {e}", file=sys.stderr)
        return 1

    logger.debug(f"Running {args.command} with {vars(args)}")
    try:
        config = Config.load()
        if args.command == "tui":
            return run_tui(args, config)
        return COMMANDS[args.command](args, config)
    except (ConfigError, StorageError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
