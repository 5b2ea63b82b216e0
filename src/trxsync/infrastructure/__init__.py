"""Infrastructure layer: adapters for banks, the ledger and configuration."""
