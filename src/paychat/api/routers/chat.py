"""Payment-gated chat API routes."""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from fastapi.responses import JSONResponse, StreamingResponse
from prometheus_client import Counter, Histogram

from ...application.dtos import ErrorResponseDTO, PaymentRequirementsDTO
from ...application.use_cases.completion_relay import CompletionRelay
from ...application.use_cases.request_gate import RequestGate
from ...domain.constants import RECEIPT_HEADER
from ...domain.entities import ChatRequest, PaymentProof
from ...domain.errors import (
    CompletionUpstreamError,
    ConfigurationError,
    MalformedChatRequestError,
)
from ...envs.gateway_env import Settings
from ..dependencies import (
    get_completion_relay,
    get_gateway_settings,
    get_request_gate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


chat_requests_total = Counter(
    "paychat_chat_requests_total",
    "Total chat requests by gate outcome",
    ["outcome"],
)

payment_verification_seconds = Histogram(
    "paychat_payment_verification_seconds",
    "Wall time to verify a payment proof",
    ["outcome"],
)

oracle_unavailable_total = Counter(
    "paychat_oracle_unavailable_total",
    "Payment proofs that could not be checked because the ledger was unreachable",
)


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponseDTO(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def _read_chat_request(request: Request, relay: CompletionRelay) -> ChatRequest:
    """Decode and validate the request body.

    Raises:
        MalformedChatRequestError: If the body is not JSON or not a chat request.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise MalformedChatRequestError(
            "Request body is not valid JSON", details=str(e)
        ) from e
    return relay.parse_request(payload)


def _resource_url(request: Request, settings: Settings) -> str:
    url = request.url_for("chat")
    if settings.public_base_url:
        return f"{settings.public_base_url}{url.path}"
    return str(url)


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/plain": {}}, "description": "Streamed completion"},
        400: {"model": ErrorResponseDTO},
        402: {"description": "Payment required or payment rejected"},
        500: {"model": ErrorResponseDTO},
    },
)
async def chat(
    request: Request,
    x_payment: Optional[str] = Header(None),
    gate: RequestGate = Depends(get_request_gate),
    relay: CompletionRelay = Depends(get_completion_relay),
    settings: Settings = Depends(get_gateway_settings),
) -> Response:
    """Stream a completion for a paid request, or answer 402 with payment terms."""
    # A paid request must be well formed before its proof is verified and
    # redeemed; requests without proof are challenged whatever their body.
    chat_request: Optional[ChatRequest] = None
    if PaymentProof.from_header(x_payment) is not None:
        try:
            chat_request = await _read_chat_request(request, relay)
        except MalformedChatRequestError as e:
            chat_requests_total.labels(outcome="bad_request").inc()
            return _error(status.HTTP_400_BAD_REQUEST, str(e), e.details)

    start_time = time.perf_counter()
    try:
        decision = await gate.evaluate(x_payment, _resource_url(request, settings))
    except ConfigurationError as e:
        logger.error("Refusing chat request: %s", e)
        chat_requests_total.labels(outcome="config_error").inc()
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server payment configuration is incomplete",
            str(e),
        )
    except Exception as e:
        logger.exception("Payment gate failed")
        chat_requests_total.labels(outcome="server_error").inc()
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(e)
        )

    if x_payment:
        elapsed = time.perf_counter() - start_time
        payment_verification_seconds.labels(outcome=decision.outcome).observe(elapsed)
    if decision.outcome == "unavailable":
        oracle_unavailable_total.inc()

    if not decision.admitted:
        chat_requests_total.labels(outcome=decision.outcome).inc()
        return JSONResponse(status_code=decision.status_code, content=decision.body)

    if chat_request is None:
        try:
            chat_request = await _read_chat_request(request, relay)
        except MalformedChatRequestError as e:
            chat_requests_total.labels(outcome="bad_request").inc()
            return _error(status.HTTP_400_BAD_REQUEST, str(e), e.details)

    try:
        stream = await relay.open_stream(chat_request)
    except CompletionUpstreamError as e:
        logger.exception("Completion provider failed for paid request")
        chat_requests_total.labels(outcome="upstream_error").inc()
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(e)
        )

    chat_requests_total.labels(outcome="admitted").inc()
    headers = {}
    if decision.receipt is not None:
        headers[RECEIPT_HEADER] = decision.receipt.to_header_value()
    return StreamingResponse(
        stream, media_type="text/plain; charset=utf-8", headers=headers
    )


@router.get("/payment-requirements", response_model=PaymentRequirementsDTO)
async def payment_requirements(
    request: Request,
    gate: RequestGate = Depends(get_request_gate),
    settings: Settings = Depends(get_gateway_settings),
) -> Response:
    """Describe how to pay for `/chat` without issuing a 402."""
    try:
        accepts = gate.payment_requirements(_resource_url(request, settings))
    except ConfigurationError as e:
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server payment configuration is incomplete",
            str(e),
        )
    body = PaymentRequirementsDTO(accepts=accepts)
    return JSONResponse(content=body.model_dump(by_alias=True))
