"""Scrutinio: friendly bets on end-of-year school outcomes, stored as Parquet tables in S3."""

__version__ = "0.1.0"
__author__ = "Scrutinio Team"

__all__ = ["__version__", "__author__"]
