"""mini-bank: accounts, authentication and market trading over a single ledger."""
