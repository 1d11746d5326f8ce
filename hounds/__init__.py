"""release-the-hounds: app-store publishing pipeline."""

__version__ = "0.3.0"
