"""Lean Ledger ETL - campaign finance aggregation and publishing pipeline."""

__version__ = "0.1.0"
