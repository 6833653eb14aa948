"""City weather refresh cache: polls current conditions per city and serves them over HTTP."""

__version__ = "0.1.0"
