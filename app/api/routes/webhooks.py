import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.core.config import get_settings
from app.schemas.meeting_webhook import FathomWebhookResponse, WebhookOutcome
from app.services.fathom_webhook_service import FathomWebhookService

router = APIRouter(tags=["webhooks"])
logger = logging.getLogger(__name__)

_OUTCOME_STATUS_CODES = {
    WebhookOutcome.unmatched: status.HTTP_202_ACCEPTED,
    WebhookOutcome.completed: status.HTTP_200_OK,
    WebhookOutcome.aborted: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post("/fathom", response_model=FathomWebhookResponse)
async def receive_fathom_webhook(
    request: Request,
    response: Response,
) -> FathomWebhookResponse:
    payload = await _load_payload(request)
    settings = get_settings()
    service = FathomWebhookService(settings)
    try:
        webhook_response = service.process_webhook(payload)
    except HTTPException as exc:
        logger.warning(
            "Webhook rejected provider=fathom path=%s status_code=%s detail=%s",
            str(request.url.path),
            exc.status_code,
            exc.detail,
        )
        raise
    except Exception:
        logger.exception(
            "Webhook processing failed provider=fathom path=%s",
            str(request.url.path),
        )
        raise

    response.status_code = _OUTCOME_STATUS_CODES[webhook_response.outcome]
    logger.info(
        "Webhook processed provider=fathom path=%s outcome=%s posted_to_clickup=%s",
        str(request.url.path),
        webhook_response.outcome.value,
        webhook_response.posted_to_clickup,
    )
    return webhook_response


async def _load_payload(request: Request) -> dict[str, Any]:
    raw_body = await request.body()
    try:
        parsed_payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Request body must be valid JSON.",
        ) from exc

    if not isinstance(parsed_payload, dict):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Request body must be a JSON object.",
        )

    return parsed_payload
