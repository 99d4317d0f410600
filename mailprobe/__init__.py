"""Bulk e-mail address verification by regex screening, MX lookup and SMTP probing."""

__version__ = "0.1.0"