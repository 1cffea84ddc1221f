"""Bill of Materials generator for Cargo projects."""

__version__ = "0.1.0"
