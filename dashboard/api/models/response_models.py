"""
API Response Models

This module contains Pydantic models for API response formatting.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

class HealthResponse(BaseModel):
    """Model for health check responses."""
    status: str = Field(..., description="Service status")
    timestamp: int = Field(..., description="Epoch milliseconds")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Service uptime in seconds")
    database: Dict[str, Any] = Field(..., description="Database connection status")
    caches: List[Dict[str, Any]] = Field(default_factory=list, description="In-process cache statistics")
    quota: Dict[str, Any] = Field(..., description="CoinMarketCap monthly quota usage")

class RevalidateResponse(BaseModel):
    revalidated: bool
    now: int = Field(..., description="Epoch milliseconds")
    cleared: List[str] = Field(default_factory=list, description="Caches cleared for the path")

class TransactionsResponse(BaseModel):
    transactions: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int

class ErrorResponse(BaseModel):
    """Model for error responses."""
    error: str = Field(..., description="Error message")
    details: Optional[Any] = Field(None, description="Error details")
