"""Vidstream: personal video streaming backed by S3-compatible storage."""

__version__ = "1.0.0"
