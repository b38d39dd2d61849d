"""Data models for receiver configuration presets."""

from .base_station import BaseStationConfig, GnssMode, Layer
