"""Deep research agent server: run streaming, state merges and a path-routed filesystem."""

__version__ = "0.1.0"
