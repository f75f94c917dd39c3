from datetime import UTC, datetime
from time import monotonic

from app.core.config import Settings
from app.schemas.health import EndpointDescription, HealthResponse, ServiceInfoResponse

_STARTED_AT = monotonic()


class HealthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get_status(self) -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service=self.settings.app_name,
            timestamp=datetime.now(UTC),
            uptime_seconds=round(monotonic() - _STARTED_AT, 3),
        )

    def get_service_info(self) -> ServiceInfoResponse:
        prefix = self.settings.api_prefix
        return ServiceInfoResponse(
            message=self.settings.app_name,
            version=self.settings.app_version,
            available_endpoints=[
                EndpointDescription(
                    path=f"{prefix}/health",
                    method="GET",
                    description="Health check",
                ),
                EndpointDescription(
                    path=f"{prefix}/fathom",
                    method="POST",
                    description="Fathom AI meeting webhook",
                ),
            ],
        )
