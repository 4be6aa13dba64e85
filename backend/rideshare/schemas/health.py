from typing import Literal

from ._strict_base import StrictModel


class HealthResponse(StrictModel):
    status: Literal["healthy", "degraded"]
    service: str
    environment: str
    database: str
    timestamp: str
