"""
Payments API routes.

Plays the caller role for the payment service: translates HTTP into service
calls and back. Keep this thin: no gateway details here. The webhook route
always verifies the signature before handing the body over.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies import get_payment_service
from application.dtos.payments import CancelPaymentRequest, OrderDTO
from application.services.payment_service import PaymentGatewayService
from core.logging_config import get_logger
from core.response import success_response
from domain.common.exceptions import InvalidWebhookSignatureException


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


def _signature_from(request: Request) -> str | None:
    for name in request.app.state.signature_headers:
        value = request.headers.get(name)
        if value:
            return value
    return None


@router.get("/methods", summary="List payment methods")
async def list_payment_methods(service: PaymentGatewayService = Depends(get_payment_service)):
    methods = [m.model_dump(mode="json") for m in service.list_payment_methods()]
    return success_response(data=methods, message="Payment methods retrieved successfully")


@router.post("/links", summary="Create payment link")
async def create_payment_link(
    order: OrderDTO,
    payment_method: str = Query(...),
    service: PaymentGatewayService = Depends(get_payment_service),
):
    link = await service.create_payment_link(order.to_entity(), payment_method)
    return success_response(data=link.model_dump(mode="json"), message="Payment link created successfully")


@router.get("/{order_code}", summary="Query payment")
async def process_payment(
    order_code: int,
    payment_method: str = Query(...),
    service: PaymentGatewayService = Depends(get_payment_service),
):
    info = await service.process_payment(order_code, payment_method)
    return success_response(data=info.model_dump(mode="json"), message="Payment processed successfully")


@router.post("/{order_code}/cancel", summary="Cancel payment")
async def cancel_payment(
    order_code: int,
    payload: CancelPaymentRequest,
    payment_method: str = Query(...),
    service: PaymentGatewayService = Depends(get_payment_service),
):
    await service.cancel_payment(order_code, payment_method, payload.reason)
    return success_response(
        data={"order_code": order_code, "payment_method": payment_method},
        message="Payment cancelled successfully",
    )


@router.post("/webhooks/{payment_method}", summary="Receive payment webhook")
async def payments_webhook(
    payment_method: str,
    request: Request,
    service: PaymentGatewayService = Depends(get_payment_service),
):
    raw_body = await request.body()
    if not service.verify_webhook(payment_method, _signature_from(request), raw_body):
        raise InvalidWebhookSignatureException(payment_method)
    result = service.handle_webhook(payment_method, raw_body)
    # Deduplication (order code + status) belongs to whoever persists the result
    logger.info(
        "payment_webhook_received",
        payment_method=result.payment_method.value,
        order_code=result.order_code,
        status=result.status.value,
    )
    return success_response(
        data=result.model_dump(mode="json", exclude={"raw_data"}),
        message="Webhook handled successfully",
    )
