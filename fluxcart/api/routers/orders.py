# fluxcart/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fluxcart.api.deps import get_context, get_notifier
from fluxcart.data.database import get_db
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import NotFoundError
from fluxcart.domain.schemas import OrderOut, ReorderOut
from fluxcart.services.notification_service import NotificationService
from fluxcart.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
) -> OrderService:
    return OrderService(db, notifier)


@router.get("", response_model=List[OrderOut])
def list_orders(
    ctx: RequestContext = Depends(get_context),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(ctx)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    svc: OrderService = Depends(get_service),
):
    """
    Pobiera szczegoly zamowienia. Cudze zamowienie = 404.
    """
    try:
        return svc.get_order(ctx, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/reorder", response_model=ReorderOut)
def reorder(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    svc: OrderService = Depends(get_service),
):
    """
    Kopiuje do koszyka tylko pozycje BUY.
    """
    try:
        added = svc.reorder(ctx, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True, "added": added}


@router.post("/{order_id}/resend-email")
def resend_email(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    svc: OrderService = Depends(get_service),
):
    try:
        svc.resend_receipt(ctx, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}
