"""Podcast show profile scraper."""

__version__ = "0.1.0"
