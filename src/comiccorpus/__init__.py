"""Crawler incrémental de comics épisodiques vers une base SQLite."""

__version__ = "0.3.0"
