"""Tutorhub scheduling backend: availability resolution and booking engine."""

__version__ = "0.1.0"
