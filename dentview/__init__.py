"""Dental X-ray display processing, picture store, tooth charts and scanner message parsing."""

__version__ = "0.1.0"