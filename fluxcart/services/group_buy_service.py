# fluxcart/services/group_buy_service.py
from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fluxcart.data.models.cart_item import CartItemModel
from fluxcart.data.models.group_buy import GroupBuyModel
from fluxcart.domain.context import RequestContext
from fluxcart.domain.enums import CartKind, GroupBuyStatus
from fluxcart.domain.errors import ClosedError, NotFoundError, ValidationError
from fluxcart.repos.cart_repo import CartRepo
from fluxcart.repos.group_buy_repo import GroupBuyRepo
from fluxcart.repos.product_repo import ProductRepo
from fluxcart.services.notification_service import NotificationService
from fluxcart.utils.clock import ensure_utc, utcnow
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    group_buy_id: int
    status: str
    participants: int
    min_participants: int


class GroupBuyService:
    """
    Group-buy: OPEN -> SETTLING -> SUCCESS | FAILED

    Przejscie OPEN -> SETTLING to warunkowy update (compare-and-swap),
    wiec przy kilku workerach rozlicza tylko jeden.
    """

    def __init__(self, db: Session, notifier: NotificationService | None = None):
        self.db = db
        self.repo = GroupBuyRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)
        self.notifier = notifier or NotificationService()

    #query
    def get(self, group_buy_id: int) -> Tuple[GroupBuyModel, int]:
        gb = self.repo.get_group_buy(group_buy_id)
        if not gb:
            raise NotFoundError()
        return gb, self.repo.count_participants(gb.id)

    def list_open(self, product_id: int, now: datetime | None = None) -> List[Tuple[GroupBuyModel, int]]:
        return self.repo.list_open(product_id, now or utcnow())

    #commands
    def create(
        self,
        ctx: RequestContext,
        product_id: int,
        min_participants: int,
        deadline: datetime,
        now: datetime | None = None,
    ) -> GroupBuyModel:
        now = now or utcnow()
        deadline = ensure_utc(deadline)

        if min_participants < 1:
            raise ValidationError("min_participants must be positive")
        if deadline <= now:
            raise ValidationError("deadline must be in the future")
        if not self.products.get_product(product_id):
            raise NotFoundError("Product not found")

        gb = self.repo.add_group_buy(
            GroupBuyModel(
                product_id=product_id,
                creator_id=ctx.user_id,
                min_participants=min_participants,
                deadline=deadline,
                status=GroupBuyStatus.OPEN.value,
            )
        )
        self.repo.commit()

        logger.info(f"Group-buy {gb.id} utworzony dla produktu {product_id}, min {min_participants}")
        return gb

    def join(self, ctx: RequestContext, group_buy_id: int, now: datetime | None = None) -> Tuple[bool, int]:
        """Zwraca (czy dopisano, liczba uczestnikow). Ponowne dolaczenie to no-op."""
        now = now or utcnow()
        gb = self.repo.get_group_buy(group_buy_id)
        if not gb:
            raise NotFoundError()
        if gb.status != GroupBuyStatus.OPEN.value or ensure_utc(gb.deadline) <= now:
            raise ClosedError()

        if self.repo.get_participant(gb.id, ctx.user_id):
            return False, self.repo.count_participants(gb.id)

        try:
            # warunek OPEN sprawdzany jeszcze raz w samym insercie,
            # rozliczenie moglo sie zakonczyc po odczycie wyzej
            inserted = self.repo.add_participant_if_open(group_buy_id, ctx.user_id, now)
            if inserted == 0:
                self.repo.rollback()
                raise ClosedError()
            self.repo.commit()
        except IntegrityError:
            # rownolegle dolaczenie tego samego usera
            self.repo.rollback()
            return False, self.repo.count_participants(group_buy_id)

        logger.info(f"Uzytkownik {ctx.user_id} dolaczyl do group-buy {group_buy_id}")
        return True, self.repo.count_participants(group_buy_id)

    def settle(self, group_buy_id: int, now: datetime | None = None) -> SettlementResult | None:
        """
        OPEN -> SETTLING -> SUCCESS | FAILED w jednej transakcji.
        Warunkowy update blokuje wiersz do commita, inni workerzy dostaja rowcount 0.
        Przerwane rozliczenie niczego nie zapisuje, wiersz zostaje OPEN.
        """
        now = now or utcnow()

        try:
            rowcount = self.repo.transition_status(
                group_buy_id,
                old_status=GroupBuyStatus.OPEN.value,
                new_data={"status": GroupBuyStatus.SETTLING.value},
                deadline_before=now,
            )
            if rowcount == 0:
                self.repo.rollback()
                logger.info(f"Group-buy {group_buy_id} pominiety (inny worker albo nie wygasl)")
                return None

            result = self._evaluate(group_buy_id, now)
            self.repo.commit()
        except BaseException as e:
            logger.error(f"Blad rozliczenia group-buy {group_buy_id}, wycofane: {e!r}")
            self.repo.rollback()
            raise

        logger.info(
            f"Group-buy {result.group_buy_id} rozliczony: {result.status} "
            f"({result.participants}/{result.min_participants})"
        )
        self.notifier.send_group_buy_outcome(result.group_buy_id, result.status)
        return result

    def settle_expired(self, now: datetime | None = None) -> List[SettlementResult]:
        now = now or utcnow()
        ids = self.repo.list_expired_open_ids(now)
        logger.info(f"Found {len(ids)} group-buys to settle")

        results = []
        for gb_id in ids:
            try:
                result = self.settle(gb_id, now)
            except Exception:
                # jeden zepsuty group-buy nie blokuje reszty
                logger.exception(f"Settlement of group-buy {gb_id} failed")
                continue
            if result is not None:
                results.append(result)
        return results

    def _evaluate(self, group_buy_id: int, now: datetime) -> SettlementResult:
        gb = self.repo.get_group_buy(group_buy_id)
        # stan w sesji jest sprzed warunkowego update
        self.db.refresh(gb)

        participants = self.repo.list_participants(gb.id, intent_only=True)
        count = len(participants)
        outcome = GroupBuyStatus.SUCCESS if count >= gb.min_participants else GroupBuyStatus.FAILED

        if outcome is GroupBuyStatus.SUCCESS:
            # intencje -> pozycje w koszyku uczestnikow
            for p in participants:
                self.carts.add_cart_item(
                    CartItemModel(
                        user_id=p.user_id,
                        product_id=gb.product_id,
                        qty=1,
                        kind=CartKind.BUY.value,
                        hold_id=f"gb_{gb.id}_{p.user_id}",
                    )
                )
        else:
            # zwalniamy intencje
            for p in participants:
                p.intent = False

        gb.status = outcome.value
        gb.settled_at = now
        self.db.flush()

        return SettlementResult(
            group_buy_id=gb.id,
            status=outcome.value,
            participants=count,
            min_participants=gb.min_participants,
        )
