"""Core ledger components for StarLedger."""
