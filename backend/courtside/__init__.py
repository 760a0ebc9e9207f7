"""Courtside session core: recurring sessions, booking requests and unified booking views."""

__version__ = "0.1.0"
