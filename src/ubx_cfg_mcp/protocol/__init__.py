"""Protocol layer: field encoding, key dictionary, command compiler and framing."""

from .framing import build_frame, parse_frame, verify_frame
from .commands import CommandSpec, COMMAND_SPECS, compile_command, compile_into
from .errors import CommandError
