"""Ledger domain package.

The ledger is the budgeting system of record that transactions are
imported into. Only its narrow port lives here; adapters are in the
infrastructure layer.
"""
