"""Firmware encryption, patching and flashing helpers for Hitachi-LG DVD drives."""

__version__ = "0.1.0"