# fluxcart/services/checkout_service.py
import uuid
from typing import Dict, List, Protocol

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fluxcart.data.models.cart_item import CartItemModel
from fluxcart.data.models.checkout_session import CheckoutSessionModel
from fluxcart.domain.checkout import (
    CheckoutLine,
    CheckoutResult,
    ConfirmResult,
    PaymentSession,
    PaymentSessionStatus,
)
from fluxcart.domain.context import RequestContext
from fluxcart.domain.enums import CheckoutStatus
from fluxcart.domain.errors import (
    EmptyCartError,
    ExternalUnavailableError,
    PaymentNotCompletedError,
    ValidationError,
)
from fluxcart.repos.cart_repo import CartRepo
from fluxcart.repos.checkout_repo import CheckoutRepo
from fluxcart.repos.order_repo import OrderRepo
from fluxcart.services.lock_service import LockService
from fluxcart.services.notification_service import NotificationService
from fluxcart.services.order_service import OrderService
from fluxcart.services.payment_gateway import COMPLETED_EVENT, session_status
from fluxcart.services.pricing import calc_discount, compute_totals
from fluxcart.services.user_service import UserService
from fluxcart.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, DEFAULT_CURRENCY, WEB_URL
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentGateway(Protocol):
    def create_session(
        self,
        lines: List[CheckoutLine],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> PaymentSession: ...

    def retrieve_session(self, reference: str) -> PaymentSessionStatus: ...

    def construct_event(self, payload: bytes, signature: str | None) -> dict: ...


def lines_from_cart(items: List[CartItemModel]) -> List[CheckoutLine]:
    # ceny czytamy z produktu teraz, nie z chwili dodania do koszyka
    return [
        CheckoutLine(
            cart_item_id=it.id,
            product_id=it.product_id,
            title=it.product.title,
            kind=it.kind,
            qty=it.qty,
            unit_price_cents=it.product.price_cents,
            currency=it.product.currency or DEFAULT_CURRENCY,
            image=(it.product.images or [None])[0],
            start_date=it.start_date,
            end_date=it.end_date,
        )
        for it in items
    ]


def cart_currency(lines: List[CheckoutLine]) -> str:
    # jedna sesja platnosci = jedna waluta
    currencies = {line.currency for line in lines}
    if len(currencies) > 1:
        raise ValidationError(f"Mixed currencies in cart: {', '.join(sorted(currencies))}")
    return currencies.pop()


class CheckoutService:
    """
    Maszyna stanow checkoutu:
    NoSession -> SessionCreated -> (potwierdzenie platnosci) -> Fulfilled

    Webhook i potwierdzenie z klienta koncza sie w tym samym, idempotentnym
    _finalize. Kluczem idempotencji jest referencja sesji platnosci
    (unikalna kolumna Order.payment_ref).
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway | None,
        lock_service: LockService | None,
        notifier: NotificationService | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.lock_service = lock_service
        self.notifier = notifier or NotificationService()
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.sessions = CheckoutRepo(db)
        self.order_service = OrderService(db, self.notifier)
        self.users = UserService(db)

    #commands
    def create_session(self, ctx: RequestContext) -> CheckoutResult:
        items = self.carts.get_cart_items(ctx.user_id)
        if not items:
            raise EmptyCartError()

        lines = lines_from_cart(items)
        totals = compute_totals(lines)
        currency = cart_currency(lines)

        if self.gateway is None:
            return self._simulate_paid(ctx, lines, totals.discount_cents, currency)

        metadata = {
            "user_id": str(ctx.user_id),
            "identifier": ctx.identifier,
            "subtotal_cents": str(totals.subtotal_cents),
            "discount_cents": str(totals.discount_cents),
        }
        web = WEB_URL.rstrip("/")
        session = self.gateway.create_session(
            lines,
            metadata,
            success_url=f"{web}/orders?paid=1&sid={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{web}/cart",
        )

        # snapshot koszyka - potwierdzenie zrealizuje dokladnie to, za co zaplacono
        self.sessions.add_session(
            CheckoutSessionModel(
                reference=session.reference,
                user_id=ctx.user_id,
                status=CheckoutStatus.OPEN.value,
                subtotal_cents=totals.subtotal_cents,
                discount_cents=totals.discount_cents,
                total_cents=totals.total_cents,
                currency=currency,
                lines=[line.to_dict() for line in lines],
            )
        )
        self.db.commit()

        logger.info(
            f"Sesja platnosci {session.reference} dla uzytkownika {ctx.user_id}, "
            f"total {totals.total_cents}"
        )
        return CheckoutResult(url=session.url, reference=session.reference)

    def confirm_payment(self, reference: str) -> ConfirmResult:
        """Synchroniczne potwierdzenie (poll z klienta po powrocie ze strony platnosci)."""
        if self.gateway is None:
            raise ExternalUnavailableError("Payments not configured")

        status = self.gateway.retrieve_session(reference)
        if not status.paid:
            raise PaymentNotCompletedError(f"Session not paid: {status.payment_status or 'unknown'}")
        return self._finalize(status)

    def handle_webhook(self, payload: bytes, signature: str | None) -> ConfirmResult | None:
        if self.gateway is None:
            logger.warning("Webhook received but payments are not configured, ignoring")
            return None

        event = self.gateway.construct_event(payload, signature)
        event_type = event.get("type")
        if event_type != COMPLETED_EVENT:
            logger.info(f"Ignoring payment event {event_type}")
            return None

        status = session_status(event["data"]["object"])
        if not status.paid:
            logger.info(f"Session {status.reference} completed but not paid ({status.payment_status})")
            return None
        return self._finalize(status)

    def _simulate_paid(
        self,
        ctx: RequestContext,
        lines: List[CheckoutLine],
        discount_cents: int,
        currency: str,
    ) -> CheckoutResult:
        reference = f"sim_{uuid.uuid4().hex}"
        order = self.order_service.create_paid_order(
            ctx.user_id, lines, discount_cents, currency, payment_ref=reference
        )
        # najpierw zamowienie (flush), potem koszyk, jeden commit
        self.carts.clear(ctx.user_id)
        self.db.commit()

        logger.info(f"Zamowienie {order.id} utworzone bez operatora platnosci (symulacja)")
        self.notifier.send_order_receipt(order.id)

        return CheckoutResult(
            url=f"{WEB_URL.rstrip('/')}/orders/{order.id}?simulated=1",
            reference=reference,
            order_id=order.id,
            simulated=True,
        )

    def _finalize(self, status: PaymentSessionStatus) -> ConfirmResult:
        ref = status.reference

        existing = self.orders.get_by_payment_ref(ref)
        if existing:
            logger.info(f"Sesja {ref} juz zrealizowana jako zamowienie {existing.id}")
            return ConfirmResult(order_id=existing.id, created=False)

        token = uuid.uuid4().hex
        key = LockService.checkout_key(ref)
        locked = self._acquire(key, token)
        if locked is False:
            # inny worker wlasnie realizuje te sesje
            logger.info(f"Sesja {ref} jest realizowana przez inny proces")
            return ConfirmResult(order_id=None, created=False)

        try:
            return self._materialize(status)
        finally:
            if locked:
                self._release(key, token)

    def _materialize(self, status: PaymentSessionStatus) -> ConfirmResult:
        ref = status.reference
        snapshot = self.sessions.get_by_reference(ref)

        if snapshot is not None:
            user_id = snapshot.user_id
            lines = [CheckoutLine.from_dict(d) for d in snapshot.lines]
            currency = snapshot.currency
        else:
            user_id = self._resolve_user_id(status.metadata)
            if user_id is None:
                logger.error(f"No resolvable user id in metadata of session {ref}: {status.metadata}")
                return ConfirmResult(order_id=None, created=False)
            items = self.carts.get_cart_items(user_id)
            if not items:
                logger.info(f"Koszyk uzytkownika {user_id} pusty, sesja {ref} bez zamowienia")
                return ConfirmResult(order_id=None, created=False)
            lines = lines_from_cart(items)
            currency = cart_currency(lines)

        subtotal = compute_totals(lines).subtotal_cents
        discount = self._discount_from_metadata(status.metadata, subtotal)

        try:
            order = self.order_service.create_paid_order(
                user_id, lines, discount, currency, payment_ref=ref
            )
            if snapshot is not None:
                self.carts.delete_items(user_id, [line.cart_item_id for line in lines if line.cart_item_id])
                snapshot.status = CheckoutStatus.FULFILLED.value
                snapshot.order_id = order.id
            else:
                self.carts.clear(user_id)
            self.db.commit()
        except IntegrityError:
            # unikalny payment_ref - ktos byl szybszy
            self.db.rollback()
            existing = self.orders.get_by_payment_ref(ref)
            if existing is None:
                raise
            logger.info(f"Sesja {ref} zrealizowana rownolegle jako zamowienie {existing.id}")
            return ConfirmResult(order_id=existing.id, created=False)

        logger.info(f"Zamowienie {order.id} utworzone z sesji {ref}, total {order.total_cents}")
        self.notifier.send_order_receipt(order.id)
        return ConfirmResult(order_id=order.id, created=True)

    def _resolve_user_id(self, metadata: Dict[str, str]) -> int | None:
        raw = (metadata.get("user_id") or "").strip()
        if raw.isdigit() and self.users.repo.get_user(int(raw)):
            return int(raw)

        identifier = (metadata.get("identifier") or "").strip()
        if identifier:
            user = self.users.find_by_identifier(identifier)
            if user:
                return user.id
        return None

    @staticmethod
    def _discount_from_metadata(metadata: Dict[str, str], subtotal_cents: int) -> int:
        # rabat z metadanych = to, co faktycznie pobrano
        raw = (metadata.get("discount_cents") or "").strip()
        try:
            value = int(raw)
        except ValueError:
            return calc_discount(subtotal_cents)
        if 0 <= value <= subtotal_cents:
            return value
        return calc_discount(subtotal_cents)

    def _acquire(self, key: str, token: str) -> bool | None:
        """True/False z redisa, None gdy redis nie odpowiada."""
        if self.lock_service is None:
            return None
        try:
            return self.lock_service.acquire(key, token, CHECKOUT_LOCK_TTL_SECONDS)
        except RedisError as e:
            # zostaje unikalny payment_ref w bazie
            logger.warning(f"Lock {key} unavailable, relying on unique payment_ref: {e}")
            return None

    def _release(self, key: str, token: str):
        try:
            self.lock_service.release(key, token)
        except RedisError as e:
            logger.warning(f"Failed to release lock {key}: {e}")
