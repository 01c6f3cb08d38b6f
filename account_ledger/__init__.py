"""
Account Ledger

Account balances driven by movements, with an append-only double-entry
ledger as the audit trail and the source for historical statements.
"""

__version__ = "1.0.0"
