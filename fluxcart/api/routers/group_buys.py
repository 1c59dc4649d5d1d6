# fluxcart/api/routers/group_buys.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fluxcart.api.deps import get_context, get_notifier
from fluxcart.data.database import get_db
from fluxcart.data.models.group_buy import GroupBuyModel
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import InvalidStateError, NotFoundError, ValidationError
from fluxcart.domain.schemas import GroupBuyIn, GroupBuyOut, JoinOut
from fluxcart.services.group_buy_service import GroupBuyService
from fluxcart.services.notification_service import NotificationService

router = APIRouter(prefix="/group-buys", tags=["group-buys"])


def get_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
) -> GroupBuyService:
    return GroupBuyService(db, notifier)


def _out(gb: GroupBuyModel, count: int) -> dict:
    return {
        "id": gb.id,
        "product_id": gb.product_id,
        "creator_id": gb.creator_id,
        "min_participants": gb.min_participants,
        "deadline": gb.deadline,
        "status": gb.status,
        "settled_at": gb.settled_at,
        "created_at": gb.created_at,
        "participant_count": count,
    }


@router.get("", response_model=List[GroupBuyOut])
def list_open(
    product_id: int | None = Query(default=None, alias="productId"),
    svc: GroupBuyService = Depends(get_service),
):
    if product_id is None:
        raise HTTPException(status_code=400, detail="productId required")
    return [_out(gb, count) for gb, count in svc.list_open(product_id)]


@router.post("", response_model=GroupBuyOut)
def create(
    payload: GroupBuyIn,
    ctx: RequestContext = Depends(get_context),
    svc: GroupBuyService = Depends(get_service),
):
    try:
        gb = svc.create(ctx, payload.product_id, payload.min_participants, payload.deadline)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _out(gb, 0)


@router.get("/{group_buy_id}", response_model=GroupBuyOut)
def get_group_buy(group_buy_id: int, svc: GroupBuyService = Depends(get_service)):
    try:
        gb, count = svc.get(group_buy_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _out(gb, count)


@router.post("/{group_buy_id}/join", response_model=JoinOut)
def join(
    group_buy_id: int,
    ctx: RequestContext = Depends(get_context),
    svc: GroupBuyService = Depends(get_service),
):
    try:
        joined, count = svc.join(ctx, group_buy_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "joined": joined, "participant_count": count}
