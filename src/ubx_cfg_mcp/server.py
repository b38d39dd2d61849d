"""MCP server entry point for UBX-CFG command compilation.

Exposes the command compiler, the family and key catalogues, base
station presets and a serial link to the receiver via the Model Context
Protocol, using the official Python MCP SDK with stdio transport.

Environment:
    UBX_CFG_PORT: default serial port for ``connect``.
    UBX_CFG_BAUDRATE: default baud rate for ``connect``.
    UBX_CFG_LOG_LEVEL: logging level name (default ``INFO``).
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.base_station import BaseStationConfig, GnssMode, Layer
from .protocol.commands import COMMAND_SPECS, compile_command as compile_line
from .protocol.config_keys import CONFIG_KEYS, iter_keys, lookup_key
from .protocol.errors import CommandError
from .transport.serial_connection import (
    DEFAULT_BAUDRATE,
    DEFAULT_PORT,
    SerialConnection,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "ubx-cfg",
    instructions="Compile and send UBX-CFG configuration commands to u-blox GNSS receivers",
)

# Global connection state
_connection: SerialConnection | None = None


def _get_connection() -> SerialConnection:
    """Get the active serial connection, raising if not connected."""
    if _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to receiver. Use the 'connect' tool first."
        )
    return _connection


def _default_port() -> str:
    return os.environ.get("UBX_CFG_PORT", DEFAULT_PORT)


def _default_baudrate() -> int:
    return int(os.environ.get("UBX_CFG_BAUDRATE", DEFAULT_BAUDRATE))


def _base_station_config(
    mode: str,
    layers: int,
    svin_min_dur: int,
    svin_acc_limit: int,
    latitude: float | None,
    longitude: float | None,
    height: float | None,
    fixed_pos_acc: int,
) -> BaseStationConfig:
    try:
        gnss_mode = GnssMode[mode.upper()]
    except KeyError:
        valid = [m.name.lower() for m in GnssMode]
        raise ValueError(f"Unknown mode '{mode}'. Valid: {valid}") from None
    return BaseStationConfig(
        mode=gnss_mode,
        layers=Layer(layers),
        svin_min_dur=svin_min_dur,
        svin_acc_limit=svin_acc_limit,
        latitude=latitude,
        longitude=longitude,
        height=height,
        fixed_pos_acc=fixed_pos_acc,
    )


# ─── COMPILER TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def compile_command(command: str) -> dict[str, Any]:
    """Compile a command line into a UBX-CFG frame without sending it.

    Args:
        command: e.g. "CFG-RATE 1000 1 1" or "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 1".
    """
    try:
        frame = compile_line(command)
    except CommandError as e:
        return {"error": str(e), "reason": type(e).__name__}
    return {"command": command, "frame": frame.hex(" "), "length": len(frame)}


@mcp.tool()
def list_command_families() -> dict[str, Any]:
    """List every supported CFG message family with its id and field layout."""
    return {"families": [spec.to_dict() for spec in COMMAND_SPECS.values()]}


@mcp.tool()
def describe_command_family(name: str) -> dict[str, Any]:
    """Show the id and positional field types of one family.

    Args:
        name: Family name with or without the CFG- prefix, e.g. "RATE".
    """
    key = name.upper()
    if key.startswith("CFG-"):
        key = key[4:]
    spec = COMMAND_SPECS.get(key)
    if spec is None:
        return {"error": f"Unknown family '{name}'. Valid: {sorted(COMMAND_SPECS)}"}
    result = spec.to_dict()
    result["payload_size"] = spec.payload_size
    return result


@mcp.tool()
def list_config_keys(prefix: str = "", limit: int = 100) -> dict[str, Any]:
    """List configuration items usable with CFG-VALSET.

    Args:
        prefix: Name prefix filter, e.g. "TMODE" or "CFG-MSGOUT-RTCM".
        limit: Maximum number of entries returned.
    """
    matches = list(iter_keys(prefix))
    return {
        "count": len(matches),
        "keys": [entry.to_dict() for entry in matches[:limit]],
    }


@mcp.tool()
def lookup_config_key(name: str) -> dict[str, Any]:
    """Resolve one configuration item name to its 32-bit key and wire type.

    Args:
        name: Full item name, e.g. "CFG-TMODE-MODE".
    """
    try:
        entry = lookup_key(name)
    except CommandError as e:
        return {"error": str(e)}
    result = entry.to_dict()
    result["group"] = entry.group
    result["storage_size"] = entry.storage_size
    return result


@mcp.tool()
def build_base_station_commands(
    mode: str,
    layers: int = int(Layer.RAM),
    svin_min_dur: int = 300,
    svin_acc_limit: int = 50000,
    latitude: float | None = None,
    longitude: float | None = None,
    height: float | None = None,
    fixed_pos_acc: int = 100,
) -> dict[str, Any]:
    """Build the VALSET commands that put a receiver in rover, survey-in or fixed mode.

    Args:
        mode: "rover", "survey" or "fixed".
        layers: Layer bitmask (1 RAM, 2 BBR, 4 flash).
        svin_min_dur: Survey-in minimum duration in seconds.
        svin_acc_limit: Survey-in accuracy limit in 0.1 mm.
        latitude: Fixed latitude in degrees.
        longitude: Fixed longitude in degrees.
        height: Fixed ellipsoidal height in metres.
        fixed_pos_acc: Fixed position accuracy in 0.1 mm.
    """
    try:
        config = _base_station_config(
            mode, layers, svin_min_dur, svin_acc_limit,
            latitude, longitude, height, fixed_pos_acc,
        )
        commands = config.to_commands()
    except ValueError as e:
        return {"error": str(e)}

    return {
        "config": config.to_dict(),
        "commands": [
            {"command": line, "frame": compile_line(line).hex(" ")}
            for line in commands
        ],
    }


# ─── RECEIVER TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def connect(port: str | None = None, baudrate: int | None = None) -> dict[str, Any]:
    """Open the serial link to the receiver.

    Args:
        port: Serial device, defaults to $UBX_CFG_PORT or /dev/ttyUSB0.
        baudrate: Baud rate, defaults to $UBX_CFG_BAUDRATE or 38400.
    """
    global _connection
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "port": _connection.port_info.port,
        }

    _connection = SerialConnection(
        port or _default_port(),
        baudrate or _default_baudrate(),
    )
    try:
        info = _connection.open()
    except ConnectionError as e:
        _connection = None
        return {"connected": False, "error": str(e)}

    return {"connected": True, "port": info.port, "baudrate": info.baudrate}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial link."""
    global _connection
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    return {"disconnected": True}


@mcp.tool()
def send_command(command: str, wait_for_response: bool = True) -> dict[str, Any]:
    """Compile a command line and write the frame to the receiver.

    The receiver's answer is returned as raw hex; it is not decoded.

    Args:
        command: Command line, e.g. "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 2".
        wait_for_response: Collect bytes sent back after the write.
    """
    conn = _get_connection()
    try:
        frame = conn.send(command)
    except CommandError as e:
        return {"error": str(e), "reason": type(e).__name__}

    result: dict[str, Any] = {"command": command, "frame": frame.hex(" ")}
    if wait_for_response:
        response = conn.read()
        result["response"] = response.hex(" ") if response else None
    return result


@mcp.tool()
def configure_base_station(
    mode: str,
    layers: int = int(Layer.RAM),
    svin_min_dur: int = 300,
    svin_acc_limit: int = 50000,
    latitude: float | None = None,
    longitude: float | None = None,
    height: float | None = None,
    fixed_pos_acc: int = 100,
) -> dict[str, Any]:
    """Send the rover, survey-in or fixed-position configuration to the receiver.

    Takes the same arguments as build_base_station_commands.
    """
    try:
        config = _base_station_config(
            mode, layers, svin_min_dur, svin_acc_limit,
            latitude, longitude, height, fixed_pos_acc,
        )
        commands = config.to_commands()
    except ValueError as e:
        return {"error": str(e)}

    conn = _get_connection()
    sent = []
    for line in commands:
        frame = conn.send(line)
        sent.append({"command": line, "frame": frame.hex(" ")})
    logger.info("Applied %s configuration (%d commands)", config.mode.name.lower(), len(sent))
    return {"config": config.to_dict(), "sent": sent}


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("ubx://catalog/commands")
def resource_command_catalog() -> str:
    """All CFG message families as JSON."""
    return json.dumps([spec.to_dict() for spec in COMMAND_SPECS.values()], indent=2)


@mcp.resource("ubx://catalog/keys")
def resource_key_catalog() -> str:
    """The complete configuration key dictionary as JSON."""
    return json.dumps([entry.to_dict() for entry in CONFIG_KEYS.values()], indent=2)


@mcp.resource("ubx://device/status")
def resource_device_status() -> str:
    """Serial link status as JSON."""
    if _connection is None or not _connection.connected:
        return json.dumps({"connected": False})
    info = _connection.port_info
    return json.dumps({"connected": True, "port": info.port, "baudrate": info.baudrate})


# ─── PROMPTS ─────────────────────────────────────────────────────────

@mcp.prompt()
def setup_base_station(mode: str = "survey") -> str:
    """Walk through turning a receiver into an RTK base station."""
    return f"""Configure the connected u-blox receiver as a {mode} base station.
Steps:
1. Use connect to open the serial link.
2. Use build_base_station_commands with mode="{mode}" to preview the commands.
   Survey-in needs a minimum duration and accuracy limit.
   Fixed mode needs latitude, longitude (degrees) and height (metres).
3. Use configure_base_station with the same arguments to apply them.
4. Enable RTCM output with send_command, e.g.
   "CFG-VALSET 0 1 0 0 CFG-MSGOUT-RTCM_3X_TYPE1005_UART1 1".
Use list_config_keys with prefix "MSGOUT-RTCM" to find message keys."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=os.environ.get("UBX_CFG_LOG_LEVEL", "INFO").upper())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
