"""polyredeem: settle-and-claim automation for Polymarket positions."""

__version__ = "0.1.0"
