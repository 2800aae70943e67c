"""Application use cases."""

from boxstock.application.use_cases.commit_sale import CommitSaleResult, CommitSaleUseCase
from boxstock.application.use_cases.decide_audit import DecideAuditResult, DecideAuditUseCase
from boxstock.application.use_cases.preview_sale import PreviewSaleResult, PreviewSaleUseCase
from boxstock.application.use_cases.reconcile_ledger import (
    ReconcileLedgerUseCase,
    ReconciliationResult,
)
from boxstock.application.use_cases.record_stock_adjustment import (
    RecordStockAdjustmentUseCase,
    StockAdjustmentResult,
)
from boxstock.application.use_cases.register_product import RegisterProductUseCase
from boxstock.application.use_cases.request_sale_change import (
    AuditRequestResult,
    RequestSaleChangeUseCase,
)

__all__ = [
    "PreviewSaleUseCase",
    "PreviewSaleResult",
    "CommitSaleUseCase",
    "CommitSaleResult",
    "RequestSaleChangeUseCase",
    "AuditRequestResult",
    "DecideAuditUseCase",
    "DecideAuditResult",
    "RecordStockAdjustmentUseCase",
    "StockAdjustmentResult",
    "RegisterProductUseCase",
    "ReconcileLedgerUseCase",
    "ReconciliationResult",
]
