# =============================================================================
# Message Import
# =============================================================================
# Reads many messages at once from stdin, one per line, for
# `mailbox import`.
#
# TSV (the default): mailbox<TAB>content[<TAB>state]
#
#   backups/nas	Nightly backup finished	read
#   alerts	Disk almost full
#
# JSON lines: one object per line with "mailbox", "content" and an optional
# "state":
#
#   {"mailbox": "alerts", "content": "Disk almost full"}
#
# Blank lines are skipped. Lines that fail to parse are reported and
# skipped; the valid lines are still imported.
# =============================================================================

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from mailbox_tui.core import MailboxPath, NewMessage, State

logger = logging.getLogger(__name__)


class ImportFormat(Enum):
    TSV = "tsv"
    JSON = "json"


@dataclass
class ImportResult:
    """
    Parsed import input.

    Attributes:
        messages: Messages parsed from valid lines, in input order.
        errors: One description per rejected line.
    """
    messages: list[NewMessage] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_tsv_line(line: str) -> NewMessage:
    """
    Parse "mailbox<TAB>content[<TAB>state]".

    Raises:
        ValueError: If the line is malformed.
    """
    fields = line.split("\t")
    if len(fields) not in (2, 3):
        raise ValueError(f"expected 2 or 3 tab-separated fields, got {len(fields)}")
    if not fields[1]:
        raise ValueError("content must not be empty")
    state = State.parse(fields[2]) if len(fields) == 3 and fields[2] else None
    return NewMessage(MailboxPath(fields[0]), fields[1], state)


def parse_json_line(line: str) -> NewMessage:
    """
    Parse a JSON object with mailbox, content and optional state.

    Raises:
        ValueError: If the line is malformed (json.JSONDecodeError is a
                    ValueError).
    """
    return NewMessage.from_dict(json.loads(line))


def read_messages(lines: Iterable[str], import_format: ImportFormat = ImportFormat.TSV) -> ImportResult:
    """
    Parse import lines, collecting errors instead of stopping at the first.
    """
    parse = parse_json_line if import_format is ImportFormat.JSON else parse_tsv_line
    result = ImportResult()
    for number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        if not line.strip():
            continue
        try:
            message = parse(line)
        except ValueError as e:
            error = f"Failed to parse line {number} as {import_format.value.upper()}: {e}\n{line}"
            logger.warning(error)
            result.errors.append(error)
            continue
        result.messages.append(message)
    return result
