"""Tests for the configuration key dictionary."""

import pytest

from ubx_cfg_mcp.protocol.config_keys import (
    CONFIG_KEYS,
    KeyDictEntry,
    iter_keys,
    lookup_key,
)
from ubx_cfg_mcp.protocol.errors import UnknownKey
from ubx_cfg_mcp.protocol.fields import FieldType


def test_dictionary_size():
    """Several hundred unique items."""
    assert len(CONFIG_KEYS) == 635


def test_names_have_no_prefix():
    for name, entry in CONFIG_KEYS.items():
        assert not name.startswith("CFG-")
        assert entry.name == name


def test_keys_unique():
    keys = [entry.key for entry in CONFIG_KEYS.values()]
    assert len(keys) == len(set(keys))


def test_type_width_matches_key_size_bits():
    """Wire width agrees with bits 28-30 of the key."""
    for entry in CONFIG_KEYS.values():
        assert entry.type.width == entry.storage_size, entry.name


def test_lookup_tmode_mode():
    entry = lookup_key("CFG-TMODE-MODE")
    assert entry == KeyDictEntry("TMODE-MODE", 0x20030001, FieldType.U1)
    assert entry.group == "TMODE"


def test_lookup_known_types():
    assert lookup_key("CFG-TMODE-LAT").type is FieldType.I4
    assert lookup_key("CFG-TMODE-LAT_HP").type is FieldType.I1
    assert lookup_key("CFG-TMODE-SVIN_MIN_DUR").type is FieldType.U4
    assert lookup_key("CFG-RATE-MEAS").type is FieldType.U2
    assert lookup_key("CFG-TP-ANT_CABLEDELAY").type is FieldType.I2
    assert lookup_key("CFG-NAVSPG-USRDAT_DX").type is FieldType.R4
    assert lookup_key("CFG-NAVSPG-USRDAT_MAJA").type is FieldType.R8
    assert lookup_key("CFG-USB-VENDOR_STR0").type is FieldType.U8


def test_lookup_unknown():
    with pytest.raises(UnknownKey):
        lookup_key("CFG-NOT-A-KEY")


def test_lookup_requires_prefix():
    with pytest.raises(UnknownKey):
        lookup_key("TMODE-MODE")


def test_lookup_is_case_sensitive():
    with pytest.raises(UnknownKey):
        lookup_key("CFG-tmode-mode")


def test_iter_keys_prefix():
    names = [entry.name for entry in iter_keys("CFG-TMODE")]
    assert "TMODE-MODE" in names
    assert all(name.startswith("TMODE") for name in names)
    assert len(names) == 17


def test_iter_keys_all():
    assert len(list(iter_keys())) == len(CONFIG_KEYS)


def test_entry_to_dict():
    d = lookup_key("CFG-TMODE-MODE").to_dict()
    assert d == {"name": "CFG-TMODE-MODE", "key": "0x20030001", "type": "U1"}


def test_dictionary_read_only():
    with pytest.raises(TypeError):
        CONFIG_KEYS["NEW"] = KeyDictEntry("NEW", 0x10000001, FieldType.U1)
