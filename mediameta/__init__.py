"""Provider adapters that normalize third-party media metadata."""

__version__ = "0.1.0"
