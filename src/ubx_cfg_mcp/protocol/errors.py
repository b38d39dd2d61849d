"""Exceptions raised while compiling a configuration command."""

from __future__ import annotations


class CommandError(ValueError):
    """Base class for every reason a command line cannot be compiled."""


class MalformedInput(CommandError):
    """Empty line, too many tokens, missing ``CFG-`` prefix or a bad value token."""


class UnknownCommand(CommandError):
    """The command family after ``CFG-`` is not in the family table."""


class BadArgumentCount(CommandError):
    """A family with a fixed grammar got the wrong number of tokens."""


class UnknownKey(CommandError):
    """The configuration item name is not in the key dictionary."""


class UnsupportedFieldType(CommandError):
    """The field type is declared but has no wire encoder."""


class BufferTooSmall(CommandError):
    """The caller-supplied output buffer cannot hold the frame."""
