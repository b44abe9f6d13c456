"""Core ledger machinery: events, transactions and the execution host."""
