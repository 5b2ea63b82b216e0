"""Banking domain package.

This package contains the domain model for bank sessions, fetched
transactions and the deduplication rules applied before import.
"""
