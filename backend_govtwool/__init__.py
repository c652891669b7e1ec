"""
Backend GovTwool: governance identifier normalization and provider reconciliation.

Normalizes Cardano DRep and proposal identifiers across their legacy and current
encodings, sanitizes third-party DRep metadata, and enriches DRep listings with
delegator and vote statistics from Koios, falling back to Blockfrost.
"""

__version__ = "0.1.0"
