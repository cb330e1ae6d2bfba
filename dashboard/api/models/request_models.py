"""
API Request Models

This module contains Pydantic models for API request validation.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

class SymbolsRequest(BaseModel):
    """Symbols to resolve against the market-data providers."""
    symbols: List[str] = Field(default_factory=list, description="Tickers or coin names")
    mode: str = Field("full", description="'full' or 'quick'")

class FallbackSymbolsRequest(BaseModel):
    """Direct CoinMarketCap lookup; callers must declare fallback intent."""
    symbols: List[str] = Field(default_factory=list, description="Tickers or coin names")
    fallbackMode: Optional[bool] = Field(None, description="Set when called as a fallback")
    reason: Optional[str] = Field(None, description="Why the fallback is used")

class AutofetchRequest(BaseModel):
    model: Optional[str] = Field(None, description="AI model for the batch analysis")

class VideoUrlRequest(BaseModel):
    url: Optional[str] = Field(None, description="YouTube video URL")

class TradingSettingsRequest(BaseModel):
    """Either ``action='add_exchange'`` with exchange fields, or a bulk ``settings`` update."""
    action: Optional[str] = Field(None, description="'add_exchange' or omitted")
    settings: Optional[Dict[str, Any]] = Field(None, description="Per-exchange settings keyed by exchange")
    exchange: Optional[str] = Field(None, description="Exchange to add")
    traderId: Optional[str] = Field(None, description="Trader id for the new exchange")
    leverage: Optional[int] = Field(None, description="Leverage for the new exchange")
    positionSize: Optional[float] = Field(None, description="Position size for the new exchange")
