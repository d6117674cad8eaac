"""slimctl - reclaim disk space from unused localizations and architectures."""

__version__ = "0.1.0"
