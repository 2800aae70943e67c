"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from boxstock.application.dto.requests import (
    AuditDecisionRequest,
    CreateProductRequest,
    DamagedStockRequest,
    NewStockRequest,
    SaleAmendmentRequest,
    SaleDeletionRequest,
    SalePreviewRequest,
    SaleRequest,
    StockCorrectionRequest,
)
from boxstock.application.dto.responses import (
    AllocationResponse,
    AllocationWarningResponse,
    AuditDecisionResponse,
    AuditListResponse,
    AuditRecordResponse,
    AuditRequestResponse,
    CommitSaleResponse,
    DatabaseHealthResponse,
    ErrorResponse,
    HealthResponse,
    PaginatedResponse,
    PoolStatsResponse,
    PreviewSaleResponse,
    ProductListResponse,
    ProductResponse,
    ReconciliationResponse,
    SaleListResponse,
    SaleResponse,
    StockAdjustmentResponse,
    StockMovementListResponse,
    StockMovementResponse,
)

__all__ = [
    # Requests
    "AuditDecisionRequest",
    "CreateProductRequest",
    "DamagedStockRequest",
    "NewStockRequest",
    "SaleAmendmentRequest",
    "SaleDeletionRequest",
    "SalePreviewRequest",
    "SaleRequest",
    "StockCorrectionRequest",
    # Responses
    "AllocationResponse",
    "AllocationWarningResponse",
    "AuditDecisionResponse",
    "AuditListResponse",
    "AuditRecordResponse",
    "AuditRequestResponse",
    "CommitSaleResponse",
    "DatabaseHealthResponse",
    "ErrorResponse",
    "HealthResponse",
    "PaginatedResponse",
    "PoolStatsResponse",
    "PreviewSaleResponse",
    "ProductListResponse",
    "ProductResponse",
    "ReconciliationResponse",
    "SaleListResponse",
    "SaleResponse",
    "StockAdjustmentResponse",
    "StockMovementListResponse",
    "StockMovementResponse",
]
