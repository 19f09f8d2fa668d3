"""
Wyrdcry - Fighter Cost Ledger

A local-first tool for pricing tabletop-wargame fighter statlines against
user-defined cost-rate profiles, with CSV import and export.
"""

__version__ = "0.1.0"
