"""Business services."""

from app.services.container import MARKET_TASK, SIGNAL_TASK, Services, build_services
from app.services.market_refresher import MarketRefresher
from app.services.signal_service import SignalService

__all__ = [
    "MarketRefresher",
    "SignalService",
    "Services",
    "build_services",
    "MARKET_TASK",
    "SIGNAL_TASK",
]
