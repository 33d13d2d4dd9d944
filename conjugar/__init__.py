"""Spanish verb conjugation trainer."""

__version__ = "0.1.0"
