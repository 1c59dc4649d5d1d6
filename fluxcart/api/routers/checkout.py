# fluxcart/api/routers/checkout.py
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from fluxcart.api.deps import get_context, get_gateway, get_lock_service, get_notifier
from fluxcart.data.database import get_db
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import (
    ExternalUnavailableError,
    PaymentVerificationError,
    ValidationError,
)
from fluxcart.domain.schemas import CheckoutOut, ConfirmOut
from fluxcart.services.checkout_service import CheckoutService
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["checkout"])


def get_service(
    db: Session = Depends(get_db),
    gateway=Depends(get_gateway),
    lock_service=Depends(get_lock_service),
    notifier=Depends(get_notifier),
) -> CheckoutService:
    return CheckoutService(db, gateway, lock_service, notifier)


@router.post("/checkout/session", response_model=CheckoutOut)
def create_session(
    ctx: RequestContext = Depends(get_context),
    svc: CheckoutService = Depends(get_service),
):
    """
    Bez operatora platnosci zamowienie powstaje od razu (symulacja),
    z operatorem zwracamy adres hostowanej platnosci.
    """
    try:
        return svc.create_session(ctx)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExternalUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/checkout/confirm", response_model=ConfirmOut)
def confirm(
    ref: str = Query(..., min_length=1),
    svc: CheckoutService = Depends(get_service),
):
    try:
        result = svc.confirm_payment(ref)
    except (ValidationError, PaymentVerificationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExternalUnavailableError as e:
        status = 400 if svc.gateway is None else 503
        raise HTTPException(status_code=status, detail=str(e))
    return {"ok": True, "order_id": result.order_id, "created": result.created}


@router.post("/webhooks/payment")
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    svc: CheckoutService = Depends(get_service),
):
    # surowe body - podpis liczony jest z bajtow, nie z JSON-a
    payload = await request.body()
    try:
        result = await run_in_threadpool(svc.handle_webhook, payload, stripe_signature)
    except (PaymentVerificationError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is None:
        return {"received": True}
    return {"received": True, "order_id": result.order_id, "created": result.created}
