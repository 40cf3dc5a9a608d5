"""Observe and control systemd services and timers."""

__version__ = '0.1.0'
