# =============================================================================
# Command Handlers
# =============================================================================
# One function per `mailbox` subcommand. Each takes the parsed arguments and
# the loaded Config and returns an exit code; argument parsing and logging
# setup live in mailbox_tui.app.
#
#   add      store one message (through the override rules)
#   import   store many messages read from stdin
#   view     print messages
#   read     mark unread messages read
#   archive  mark unread and read messages archived
#   clear    delete archived messages
#   config   locate, edit or create the config file
#   server   serve the local database over HTTP
#
# Commands that change messages print the affected messages the same way
# `view` does.
# =============================================================================

import argparse
import asyncio
import logging
import os
import shlex
import subprocess
import sys
from typing import Awaitable, Callable, TypeVar

from rich.console import Console

from mailbox_tui.config import Config, ConfigError
from mailbox_tui.core import MailboxPath, Message, MessageFilter, NewMessage, State
from mailbox_tui.importer import ImportFormat, read_messages
from mailbox_tui.rendering import MessageFormatter, TimestampFormat
from mailbox_tui.server import run_server
from mailbox_tui.storage import MessageStore, open_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Rows kept free below the output of `view` on a terminal
RESERVED_ROWS = 4
MIN_ROWS = 8

AUTH_TOKEN_ENV = "MAILBOX_AUTH_TOKEN"


# =============================================================================
# Shared Helpers
# =============================================================================

def parse_state_choice(value: str) -> set[State] | None:
    """
    Parse the --state option of view and tui.

    "unarchived" means unread and read; "all" means no state restriction
    and returns None.
    """
    if value == "all":
        return None
    if value == "unarchived":
        return {State.UNREAD, State.READ}
    return {State.parse(value)}


def build_filter(mailbox: MailboxPath | None, states: set[State] | None) -> MessageFilter:
    message_filter = MessageFilter().with_mailbox(mailbox)
    if states is not None:
        message_filter = message_filter.with_states(states)
    return message_filter


def make_console(color: bool | None) -> Console:
    """Console for stdout. Color follows the terminal unless forced."""
    if color is None:
        return Console(highlight=False, soft_wrap=True)
    return Console(highlight=False, soft_wrap=True, force_terminal=color, no_color=not color)


def make_formatter(args: argparse.Namespace, console: Console) -> MessageFormatter:
    """
    Formatter for printed messages.

    On a terminal the output is fitted to the window unless --full-output
    was given; redirected output is never shortened.
    """
    timestamp_format = (
        TimestampFormat(args.timestamp_format) if args.timestamp_format
        else TimestampFormat.RELATIVE if sys.stdout.isatty()
        else TimestampFormat.LOCAL
    )
    formatter = (
        MessageFormatter()
        .with_color(console.is_terminal and not console.no_color)
        .with_timestamp_format(timestamp_format)
    )
    if sys.stdout.isatty() and not getattr(args, "full_output", False):
        width, height = console.size
        formatter = formatter.with_max_columns(width).with_max_lines(
            max(MIN_ROWS, height - RESERVED_ROWS)
        )
    return formatter


def print_messages(args: argparse.Namespace, messages: list[Message]) -> None:
    console = make_console(args.color)
    for line in make_formatter(args, console).render_lines(messages):
        console.print(line)


def with_store(config: Config, operation: Callable[[MessageStore], Awaitable[T]]) -> T:
    """Open the configured store, run one operation on it and close it."""

    async def run() -> T:
        store = await open_store(config)
        try:
            return await operation(store)
        finally:
            await store.close()

    return asyncio.run(run())


# =============================================================================
# Message Commands
# =============================================================================

def cmd_add(args: argparse.Namespace, config: Config) -> int:
    state = State.parse(args.state) if args.state else None
    message = NewMessage(args.mailbox, args.content, state)
    stored = with_store(config, lambda store: store.add_messages([message]))
    if not stored:
        logger.info(f"Message for {args.mailbox} was ignored by an override")
    print_messages(args, stored)
    return 0


def cmd_import(args: argparse.Namespace, config: Config) -> int:
    result = read_messages(sys.stdin, ImportFormat(args.format))
    for error in result.errors:
        print(f"Error: {error}", file=sys.stderr)

    stored = with_store(config, lambda store: store.add_messages(result.messages))
    logger.info(f"Imported {len(stored)} message(s), rejected {len(result.errors)} line(s)")
    print_messages(args, stored)
    return 1 if result.errors else 0


def cmd_view(args: argparse.Namespace, config: Config) -> int:
    message_filter = build_filter(args.mailbox, parse_state_choice(args.state))
    messages = with_store(config, lambda store: store.load_messages(message_filter))
    print_messages(args, messages)
    return 0


def cmd_read(args: argparse.Namespace, config: Config) -> int:
    message_filter = build_filter(args.mailbox, {State.UNREAD})
    changed = with_store(config, lambda store: store.change_state(message_filter, State.READ))
    print_messages(args, changed)
    return 0


def cmd_archive(args: argparse.Namespace, config: Config) -> int:
    message_filter = build_filter(args.mailbox, {State.UNREAD, State.READ})
    changed = with_store(
        config, lambda store: store.change_state(message_filter, State.ARCHIVED)
    )
    print_messages(args, changed)
    return 0


def cmd_clear(args: argparse.Namespace, config: Config) -> int:
    message_filter = build_filter(args.mailbox, {State.ARCHIVED})
    deleted = with_store(config, lambda store: store.delete_messages(message_filter))
    print_messages(args, deleted)
    return 0


# =============================================================================
# Config and Server Commands
# =============================================================================

def cmd_config(args: argparse.Namespace, config: Config) -> int:
    path = Config.config_file_path()

    if args.config_command == "locate":
        print(path)
        return 0

    if args.config_command == "init":
        if path.exists():
            raise ConfigError(f"{path} already exists")
        Config().save(path)
        print(f"Created {path}")
        return 0

    # edit
    if not path.exists():
        Config().save(path)
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"
    logger.info(f"Editing {path} with {editor}")
    completed = subprocess.run([*shlex.split(editor), str(path)])
    if completed.returncode != 0:
        print(f"Error: {editor} exited with status {completed.returncode}", file=sys.stderr)
        return 1
    # Report mistakes right away rather than on the next run
    Config.load(path)
    return 0


def cmd_server(args: argparse.Namespace, config: Config) -> int:
    token = args.token or os.environ.get(AUTH_TOKEN_ENV)
    if not token:
        logger.warning("Server started without an auth token")
    run_server(host=args.host, port=args.port, token=token, debug=args.debug)
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, Config], int]] = {
    "add": cmd_add,
    "import": cmd_import,
    "view": cmd_view,
    "read": cmd_read,
    "archive": cmd_archive,
    "clear": cmd_clear,
    "config": cmd_config,
    "server": cmd_server,
}
