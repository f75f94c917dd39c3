from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str
    timestamp: datetime
    uptime_seconds: float


class EndpointDescription(BaseModel):
    path: str
    method: str
    description: str


class ServiceInfoResponse(BaseModel):
    message: str
    version: str
    available_endpoints: list[EndpointDescription]
