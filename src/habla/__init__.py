"""Habla - language tutoring chat with live grammar corrections."""

__version__ = "0.1.0"
