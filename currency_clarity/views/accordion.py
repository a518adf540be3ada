"""
Which label sections are expanded.

"Expand all" and "collapse all" are one-shot commands, not modes: the
engine applies them to the current set of sections and hands back
AccordionCommand.DEFAULT, after which the user toggles sections one by
one again. When a search or a filter produces a new result set, every
matching section is opened once; the user can collapse them afterwards.
"""

from datetime import date
from enum import Enum
from typing import Iterable


class AccordionCommand(str, Enum):
    DEFAULT = "default"
    ALL_OPEN = "all-open"
    ALL_CLOSED = "all-closed"


def section_key(day: date, label: str) -> str:
    """Stable identifier of one (day, label) section."""
    return f"{day.isoformat()}-{label}"


def _unique(keys: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(keys))


def resolve_open_sections(
    command: AccordionCommand,
    section_keys: Iterable[str],
    open_sections: Iterable[str],
    auto_expand: bool = False,
) -> tuple[list[str], AccordionCommand]:
    """
    Apply a command to the open-section set.

    Returns:
        (open_sections, next_command) - next_command is always DEFAULT,
        so a command is consumed exactly once.
    """
    command = AccordionCommand(command)

    if command is AccordionCommand.ALL_OPEN:
        opened = _unique(section_keys)
    elif command is AccordionCommand.ALL_CLOSED:
        opened = []
    elif auto_expand:
        opened = _unique(section_keys)
    else:
        opened = _unique(open_sections)

    return opened, AccordionCommand.DEFAULT


def toggle_section(open_sections: Iterable[str], key: str) -> list[str]:
    """Open `key` if closed, close it if open."""
    opened = _unique(open_sections)
    if key in opened:
        opened.remove(key)
    else:
        opened.append(key)
    return opened
