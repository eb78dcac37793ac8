"""dx: develop one service locally against the rest of the cluster."""

__version__ = "0.1.0"
