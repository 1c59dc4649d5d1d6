# fluxcart/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from fluxcart.data.database import get_db
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import ValidationError
from fluxcart.services.lock_service import LockService
from fluxcart.services.notification_service import NotificationService
from fluxcart.services.payment_gateway import StripePaymentGateway, get_payment_gateway
from fluxcart.services.search_client import SearchClient, get_search_client
from fluxcart.services.user_service import UserService


def get_context(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> RequestContext:
    # tozsamosc ustalana raz, serwisy dostaja gotowy kontekst
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="No user")
    try:
        return UserService(db).context_for(x_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=401, detail=str(e))


def get_gateway() -> StripePaymentGateway | None:
    return get_payment_gateway()


_lock_service: LockService | None = None


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service


def get_notifier() -> NotificationService:
    return NotificationService()


def get_search() -> SearchClient | None:
    return get_search_client()
