"""Tests for base-station time mode presets."""

import pytest

from ubx_cfg_mcp.models.base_station import BaseStationConfig, GnssMode, Layer
from ubx_cfg_mcp.protocol.framing import verify_frame


def test_rover_commands():
    config = BaseStationConfig()
    assert config.to_commands() == ["CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 0"]


def test_survey_commands():
    config = BaseStationConfig(mode=GnssMode.SURVEY, svin_min_dur=120, svin_acc_limit=20000)
    assert config.to_commands() == [
        "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 1",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-SVIN_MIN_DUR 120",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-SVIN_ACC_LIMIT 20000",
    ]


def test_fixed_commands():
    config = BaseStationConfig(
        mode=GnssMode.FIXED,
        latitude=20.9600040,
        longitude=105.7684480,
        height=-1.0,
    )
    assert config.to_commands() == [
        "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 2",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-POS_TYPE 1",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-LAT 209600040",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-LON 1057684480",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-HEIGHT -100",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-LAT_HP 0",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-LON_HP 0",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-HEIGHT_HP 0",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-FIXED_POS_ACC 100",
    ]


def test_fixed_high_precision_split():
    """Sub-unit digits go to the *_HP items with the sign of the main value."""
    config = BaseStationConfig(
        mode=GnssMode.FIXED,
        latitude=47.123456789,
        longitude=-122.987654321,
        height=123.4567,
    )
    commands = config.to_commands()
    assert "CFG-VALSET 0 1 0 0 CFG-TMODE-LAT 471234567" in commands
    assert "CFG-VALSET 0 1 0 0 CFG-TMODE-LAT_HP 89" in commands
    assert "CFG-VALSET 0 1 0 0 CFG-TMODE-LON -1229876543" in commands
    assert "CFG-VALSET 0 1 0 0 CFG-TMODE-LON_HP -21" in commands
    assert "CFG-VALSET 0 1 0 0 CFG-TMODE-HEIGHT 12345" in commands
    assert "CFG-VALSET 0 1 0 0 CFG-TMODE-HEIGHT_HP 67" in commands


def test_layers_in_header():
    config = BaseStationConfig(layers=Layer.RAM | Layer.FLASH)
    assert config.to_commands() == ["CFG-VALSET 0 5 0 0 CFG-TMODE-MODE 0"]


def test_mode_from_int():
    config = BaseStationConfig(mode=1)
    assert config.mode is GnssMode.SURVEY


def test_fixed_requires_position():
    with pytest.raises(ValueError):
        BaseStationConfig(mode=GnssMode.FIXED, latitude=10.0).to_commands()


@pytest.mark.parametrize("lat, lon", [(90.5, 0.0), (-91.0, 0.0), (0.0, 180.1), (0.0, -200.0)])
def test_fixed_position_range(lat, lon):
    config = BaseStationConfig(mode=GnssMode.FIXED, latitude=lat, longitude=lon, height=0.0)
    with pytest.raises(ValueError):
        config.to_commands()


def test_survey_requires_positive_limits():
    with pytest.raises(ValueError):
        BaseStationConfig(mode=GnssMode.SURVEY, svin_min_dur=0).to_commands()


def test_to_frames_compile():
    config = BaseStationConfig(mode=GnssMode.FIXED, latitude=20.960004, longitude=105.768448, height=-1.0)
    frames = config.to_frames()
    assert len(frames) == 9
    assert all(verify_frame(frame) for frame in frames)
    assert frames[2] == bytes.fromhex(
        "b5 62 06 8a 0c 00 00 01 00 00 09 00 03 40 28 3e 7e 0c d9 25"
    )


def test_to_dict():
    d = BaseStationConfig(mode=GnssMode.SURVEY).to_dict()
    assert d == {"mode": "survey", "layers": 1, "svin_min_dur": 300, "svin_acc_limit": 50000}
