#fluxcart/api/routers/carts.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fluxcart.api.deps import get_context
from fluxcart.data.database import get_db
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import NotFoundError, ValidationError
from fluxcart.domain.schemas import CartItemIn, CartItemOut, CartQtyIn, CartQtyOut
from fluxcart.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=List[CartItemOut])
def list_cart(ctx: RequestContext = Depends(get_context), db: Session = Depends(get_db)):
    return CartService(db).list_items(ctx)


@router.post("/items", response_model=CartItemOut)
def add_item(
    payload: CartItemIn,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.add_item(
            ctx,
            product_id=payload.product_id,
            qty=payload.qty,
            kind=payload.kind,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/items/{item_id}", response_model=CartQtyOut)
def set_qty(
    item_id: int,
    payload: CartQtyIn,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        item = svc.set_qty(ctx, item_id, payload.qty)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if item is None:
        return {"ok": True, "deleted": True}
    return {"ok": True, "deleted": False, "item": item}


@router.delete("/items/{item_id}")
def remove_item(
    item_id: int,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    try:
        CartService(db).remove_item(ctx, item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}
