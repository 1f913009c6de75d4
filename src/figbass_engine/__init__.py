"""figbass-engine — figured bass parsing, normalization and layout."""

__version__ = "0.1.0"
