"""Compile UBX-CFG configuration commands for u-blox GNSS base stations."""

__version__ = "0.1.0"
