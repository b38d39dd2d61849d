"""Base-station time mode presets.

A receiver acting as an RTK base runs in one of three time modes, set
through the ``CFG-TMODE-*`` items:

- rover: time mode disabled, normal navigation
- survey: the receiver averages its own position until both the minimum
  duration and the accuracy limit are reached
- fixed: the antenna position is supplied, here as latitude, longitude
  and ellipsoidal height

Fixed positions are split into a standard part and a high-precision
remainder, as the receiver expects: latitude/longitude in 1e-7 deg plus
1e-9 deg, height in cm plus 0.1 mm.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag

from ..protocol.commands import compile_command

POS_TYPE_LLH = 1


class GnssMode(IntEnum):
    """Values of ``CFG-TMODE-MODE``."""

    ROVER = 0
    SURVEY = 1
    FIXED = 2


class Layer(IntFlag):
    """Configuration layers a VALSET writes to."""

    RAM = 0x01
    BBR = 0x02
    FLASH = 0x04


def _split_high_precision(value: float, scale: int) -> tuple[int, int]:
    """Split ``value`` into ``(coarse, fine)`` with ``coarse`` in 1/scale units.

    ``fine`` is in 1/(scale*100) units and always within -99..99, with the
    same sign as ``coarse``.
    """
    total = round(value * scale * 100)
    coarse = abs(total) // 100
    if total < 0:
        coarse = -coarse
    return coarse, total - coarse * 100


@dataclass
class BaseStationConfig:
    """Time mode settings for one receiver.

    Attributes:
        mode: Rover, survey-in or fixed position.
        layers: Layers to write (RAM by default).
        svin_min_dur: Survey-in minimum duration in seconds.
        svin_acc_limit: Survey-in position accuracy limit in 0.1 mm.
        latitude: Fixed latitude in degrees.
        longitude: Fixed longitude in degrees.
        height: Fixed ellipsoidal height in metres.
        fixed_pos_acc: Accuracy of the fixed position in 0.1 mm.
    """

    mode: GnssMode = GnssMode.ROVER
    layers: Layer = Layer.RAM
    svin_min_dur: int = 300
    svin_acc_limit: int = 50000
    latitude: float | None = None
    longitude: float | None = None
    height: float | None = None
    fixed_pos_acc: int = 100

    def __post_init__(self) -> None:
        self.mode = GnssMode(self.mode)
        self.layers = Layer(self.layers)

    def _valset(self, key: str, value: int) -> str:
        return f"CFG-VALSET 0 {int(self.layers)} 0 0 CFG-TMODE-{key} {value}"

    def validate(self) -> None:
        """Raise ``ValueError`` if the settings cannot be applied."""
        if self.mode is GnssMode.SURVEY:
            if self.svin_min_dur <= 0:
                raise ValueError(f"Survey-in duration must be positive, got {self.svin_min_dur}")
            if self.svin_acc_limit <= 0:
                raise ValueError(f"Survey-in accuracy limit must be positive, got {self.svin_acc_limit}")
        elif self.mode is GnssMode.FIXED:
            if self.latitude is None or self.longitude is None or self.height is None:
                raise ValueError("Fixed mode needs latitude, longitude and height")
            if not -90.0 <= self.latitude <= 90.0:
                raise ValueError(f"Latitude must be within +-90 deg, got {self.latitude}")
            if not -180.0 <= self.longitude <= 180.0:
                raise ValueError(f"Longitude must be within +-180 deg, got {self.longitude}")
            if self.fixed_pos_acc < 0:
                raise ValueError(f"Position accuracy must not be negative, got {self.fixed_pos_acc}")

    def to_commands(self) -> list[str]:
        """Return the VALSET command lines that apply this configuration."""
        self.validate()
        commands = [self._valset("MODE", self.mode.value)]

        if self.mode is GnssMode.SURVEY:
            commands.append(self._valset("SVIN_MIN_DUR", self.svin_min_dur))
            commands.append(self._valset("SVIN_ACC_LIMIT", self.svin_acc_limit))
        elif self.mode is GnssMode.FIXED:
            lat, lat_hp = _split_high_precision(self.latitude, 10**7)
            lon, lon_hp = _split_high_precision(self.longitude, 10**7)
            height, height_hp = _split_high_precision(self.height, 100)
            commands += [
                self._valset("POS_TYPE", POS_TYPE_LLH),
                self._valset("LAT", lat),
                self._valset("LON", lon),
                self._valset("HEIGHT", height),
                self._valset("LAT_HP", lat_hp),
                self._valset("LON_HP", lon_hp),
                self._valset("HEIGHT_HP", height_hp),
                self._valset("FIXED_POS_ACC", self.fixed_pos_acc),
            ]
        return commands

    def to_frames(self) -> list[bytes]:
        """Compile :meth:`to_commands` into UBX frames."""
        return [compile_command(line) for line in self.to_commands()]

    def to_dict(self) -> dict:
        d = {"mode": self.mode.name.lower(), "layers": int(self.layers)}
        if self.mode is GnssMode.SURVEY:
            d.update(svin_min_dur=self.svin_min_dur, svin_acc_limit=self.svin_acc_limit)
        elif self.mode is GnssMode.FIXED:
            d.update(
                latitude=self.latitude,
                longitude=self.longitude,
                height=self.height,
                fixed_pos_acc=self.fixed_pos_acc,
            )
        return d
