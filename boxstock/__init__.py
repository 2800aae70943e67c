"""Box/weight stock engine: allocation, stock movement ledger and sales audit approvals."""

__version__ = "1.0.0"
