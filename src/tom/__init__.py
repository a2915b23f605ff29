"""Decision service clients."""

from src.tom.client import DecisionServiceError, TomClient
from src.tom.portal import PortalClient

__all__ = [
    "DecisionServiceError",
    "PortalClient",
    "TomClient",
]
