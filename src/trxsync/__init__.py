"""trxsync - import bank transactions into Actual Budget."""

__version__ = "0.3.0"
