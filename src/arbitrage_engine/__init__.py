"""Rolling-horizon battery arbitrage optimizer."""

__version__ = "0.1.0"
