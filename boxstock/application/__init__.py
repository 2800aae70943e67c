"""
Application layer - Use cases and DTOs.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that run core services inside per-product
   transactions

Use cases are the only entry point for API handlers that change stock.
"""

from boxstock.application.use_cases import (
    CommitSaleUseCase,
    DecideAuditUseCase,
    PreviewSaleUseCase,
    ReconcileLedgerUseCase,
    RecordStockAdjustmentUseCase,
    RegisterProductUseCase,
    RequestSaleChangeUseCase,
)

__all__ = [
    "PreviewSaleUseCase",
    "CommitSaleUseCase",
    "RequestSaleChangeUseCase",
    "DecideAuditUseCase",
    "RecordStockAdjustmentUseCase",
    "RegisterProductUseCase",
    "ReconcileLedgerUseCase",
]
