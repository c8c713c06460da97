"""Aegis Core - blueprint compliance, drift prediction and self-healing."""

__version__ = "0.1.0"
