"""Air Companion - user state and air-credit economy engine."""

__version__ = "0.1.0"
