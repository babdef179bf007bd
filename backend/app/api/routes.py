"""REST API routes."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from app.clients import ClientError, DeserializationError
from app.services import Services
from core.models import Direction, PerformanceRecord, Signal

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class SignalResponse(BaseModel):
    """Signal response model."""

    id: str
    asset: str
    direction: str
    confidence: int
    active: bool
    createdAt: datetime


class SignalCreateRequest(BaseModel):
    """Manually entered signal."""

    asset: str = Field(min_length=1)
    signalType: Direction
    confidence: int = Field(ge=0, le=100)


class GenerateRequest(BaseModel):
    """Optional single-symbol restriction for on-demand generation."""

    symbol: Optional[str] = None


class GenerateResponse(BaseModel):
    """Result of an on-demand generation pass."""

    signals: list[SignalResponse]
    skipped: dict[str, str]
    failures: dict[str, str]


class StatsResponse(BaseModel):
    """Signal counts."""

    totalSignals: int
    activeSignals: int


class PerformanceCreateRequest(BaseModel):
    """Realised PnL for a user and signal."""

    userId: str = Field(min_length=1)
    signalId: str = Field(min_length=1)
    pnl: float
    isOpen: bool = False


class PerformanceResponse(BaseModel):
    """One ledger entry."""

    id: str
    userId: str
    signalId: str
    pnl: float
    isOpen: bool
    createdAt: datetime


class PerformanceSummary(BaseModel):
    """Ledger totals across all users."""

    totalPnl: float
    totalRecords: int
    openPositions: int


class SystemStatus(BaseModel):
    """System status response."""

    status: str
    version: str
    symbols: list[str]
    strategy: str
    subscribers: int
    tasks: list[dict]


# Dependency for the process services
def get_services(request: Request) -> Services:
    return request.app.state.services


def _to_response(signal: Signal) -> SignalResponse:
    return SignalResponse(
        id=signal.id,
        asset=signal.asset,
        direction=signal.direction.value,
        confidence=signal.confidence,
        active=signal.active,
        createdAt=signal.created_at,
    )


@router.get("/status", response_model=SystemStatus)
async def get_status(services: Services = Depends(get_services)):
    """Get system status."""
    return SystemStatus(
        status="running",
        version="0.1.0",
        symbols=services.settings.symbols,
        strategy=services.engine.strategy.name,
        subscribers=services.hub.subscriber_count,
        tasks=services.scheduler.status(),
    )


@router.get("/markets")
async def get_markets(services: Services = Depends(get_services)):
    """Get the latest market snapshots (newest first)."""
    return await services.storage.markets.get_latest(limit=50)


@router.get("/signals", response_model=list[SignalResponse])
async def get_signals(
    asset: Optional[str] = Query(None, description="Filter by asset"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum signals to return"),
    services: Services = Depends(get_services),
):
    """Get recent signals (newest first)."""
    signals = await services.storage.signals.get_recent(limit=limit, asset=asset)
    return [_to_response(s) for s in signals]


@router.get("/signals/active", response_model=list[SignalResponse])
async def get_active_signals(
    asset: Optional[str] = Query(None, description="Filter by asset"),
    services: Services = Depends(get_services),
):
    """Get active signals."""
    signals = await services.storage.signals.get_active(asset=asset)
    return [_to_response(s) for s in signals]


@router.post("/signals", response_model=SignalResponse, status_code=201)
async def create_signal(body: SignalCreateRequest, services: Services = Depends(get_services)):
    """Store a manually entered signal and broadcast it."""
    signal = Signal(asset=body.asset, direction=body.signalType, confidence=body.confidence)
    await services.storage.signals.insert(signal)
    await services.hub.publish_signal(signal)
    logger.info(f"Manual signal created: {signal.asset} {signal.direction.value} ({signal.confidence})")
    return _to_response(signal)


@router.post("/signals/generate", response_model=GenerateResponse)
async def generate_signals(
    body: Optional[GenerateRequest] = None,
    services: Services = Depends(get_services),
):
    """Run signal generation now, for one symbol or all tracked symbols."""
    symbols = None
    if body and body.symbol:
        if body.symbol not in services.settings.symbols:
            raise HTTPException(status_code=404, detail=f"Unknown symbol: {body.symbol}")
        symbols = [body.symbol]

    result = await services.signal_service.run_detailed(symbols)
    return GenerateResponse(
        signals=[_to_response(s) for s in result.signals],
        skipped=result.skipped,
        failures=result.failures,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(services: Services = Depends(get_services)):
    """Get total and active signal counts."""
    stats = await services.storage.signals.get_stats()
    return StatsResponse(
        totalSignals=stats["total_signals"],
        activeSignals=stats["active_signals"],
    )


@router.get("/performance", response_model=PerformanceSummary)
async def get_performance_summary(services: Services = Depends(get_services)):
    """Get overall PnL totals."""
    summary = await services.storage.performance.get_summary()
    return PerformanceSummary(
        totalPnl=summary["total_pnl"],
        totalRecords=summary["total_records"],
        openPositions=summary["open_positions"],
    )


@router.get("/performance/{user_id}", response_model=list[PerformanceResponse])
async def get_user_performance(user_id: str, services: Services = Depends(get_services)):
    """Get a user's PnL records (newest first)."""
    records = await services.storage.performance.get_for_user(user_id)
    return [PerformanceResponse(**r.to_payload()) for r in records]


@router.post("/performance", response_model=PerformanceResponse, status_code=201)
async def record_performance(
    body: PerformanceCreateRequest,
    services: Services = Depends(get_services),
):
    """Record realised PnL for a signal."""
    record = PerformanceRecord(
        user_id=body.userId,
        signal_id=body.signalId,
        pnl=body.pnl,
        is_open=body.isOpen,
    )
    await services.storage.performance.record(record)
    return PerformanceResponse(**record.to_payload())


@router.get("/funding/{symbol}")
async def get_funding_rate(symbol: str, services: Services = Depends(get_services)):
    """Proxy the current funding rate for a coin."""
    try:
        rate = await services.hyperliquid.get_funding_rate(symbol)
    except DeserializationError as e:
        logger.error(f"Funding rate response invalid for {symbol}: {e}")
        raise HTTPException(
            status_code=502,
            detail={"kind": e.kind, "path": e.path, "error": str(e)},
        )
    except ClientError as e:
        logger.error(f"Funding rate error for {symbol}: {e}")
        raise HTTPException(status_code=502, detail={"error": str(e)})
    return rate.to_payload()
