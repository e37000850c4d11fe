"""
Top-level package for the Invoice Verification Service.

This package exposes:
- Invoice identifier normalization
- Invoice verification logic (status gating, amount reconciliation)
- The record store contract and its in-memory implementation
- CLI entrypoints
- HTTP API (FastAPI)
"""

__all__ = [
    "schema",
    "normalizer",
    "store",
    "verifier",
]
