"""Scienceing search proxy — headless-browser login and search behind a JSON API."""

__version__ = "0.1.0"
