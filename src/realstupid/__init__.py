"""RealStupid: a two-mode community posting service."""

__version__ = "0.1.0"
