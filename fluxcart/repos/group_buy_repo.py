# fluxcart/repos/group_buy_repo.py
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import Boolean, DateTime, Integer, func, insert, literal, select, update
from sqlalchemy.orm import Session

from fluxcart.data.models.group_buy import GroupBuyModel, GroupBuyParticipantModel


class GroupBuyRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_group_buy(self, gb: GroupBuyModel) -> GroupBuyModel:
        self.db.add(gb)
        self.db.flush()
        return gb

    def get_group_buy(self, group_buy_id: int) -> GroupBuyModel | None:
        return self.db.get(GroupBuyModel, group_buy_id)

    def get_participant(self, group_buy_id: int, user_id: int) -> GroupBuyParticipantModel | None:
        return self.db.execute(
            select(GroupBuyParticipantModel).where(
                GroupBuyParticipantModel.group_buy_id == group_buy_id,
                GroupBuyParticipantModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def add_participant_if_open(self, group_buy_id: int, user_id: int, now: datetime) -> int:
        #INSERT ... SELECT FROM group_buys WHERE status OPEN AND deadline > now FOR SHARE
        #blokada wspoldzielona czeka na rozliczenie, ktore trzyma wiersz do commita
        source = (
            select(
                literal(group_buy_id, Integer),
                literal(user_id, Integer),
                literal(True, Boolean),
                literal(now, DateTime(timezone=True)),
            )
            .select_from(GroupBuyModel)
            .where(
                GroupBuyModel.id == group_buy_id,
                GroupBuyModel.status == "OPEN",
                GroupBuyModel.deadline > now,
            )
            .with_for_update(read=True)
        )
        res = self.db.execute(
            insert(GroupBuyParticipantModel.__table__).from_select(
                ["group_buy_id", "user_id", "intent", "created_at"], source
            )
        )
        return res.rowcount

    def list_participants(self, group_buy_id: int, intent_only: bool = False) -> List[GroupBuyParticipantModel]:
        stmt = select(GroupBuyParticipantModel).where(
            GroupBuyParticipantModel.group_buy_id == group_buy_id
        )
        if intent_only:
            stmt = stmt.where(GroupBuyParticipantModel.intent.is_(True))
        return list(self.db.execute(stmt.order_by(GroupBuyParticipantModel.id)).scalars().all())

    def count_participants(self, group_buy_id: int, intent_only: bool = False) -> int:
        stmt = select(func.count(GroupBuyParticipantModel.id)).where(
            GroupBuyParticipantModel.group_buy_id == group_buy_id
        )
        if intent_only:
            stmt = stmt.where(GroupBuyParticipantModel.intent.is_(True))
        return self.db.execute(stmt).scalar_one()

    def list_open(self, product_id: int, now: datetime) -> List[Tuple[GroupBuyModel, int]]:
        counts = (
            select(
                GroupBuyParticipantModel.group_buy_id.label("gb_id"),
                func.count(GroupBuyParticipantModel.id).label("cnt"),
            )
            .group_by(GroupBuyParticipantModel.group_buy_id)
            .subquery()
        )
        rows = self.db.execute(
            select(GroupBuyModel, func.coalesce(counts.c.cnt, 0))
            .outerjoin(counts, counts.c.gb_id == GroupBuyModel.id)
            .where(
                GroupBuyModel.product_id == product_id,
                GroupBuyModel.status == "OPEN",
                GroupBuyModel.deadline > now,
            )
            .order_by(GroupBuyModel.deadline.asc(), GroupBuyModel.id.asc())
        ).all()
        return [(gb, int(cnt)) for gb, cnt in rows]

    def list_expired_open_ids(self, now: datetime) -> List[int]:
        return list(
            self.db.execute(
                select(GroupBuyModel.id)
                .where(GroupBuyModel.status == "OPEN", GroupBuyModel.deadline <= now)
                .order_by(GroupBuyModel.deadline.asc())
            ).scalars().all()
        )

    def transition_status(
        self,
        group_buy_id: int,
        old_status: str,
        new_data: dict,
        deadline_before: datetime | None = None,
    ) -> int:
        #warunkowy update, np update set status SETTLING where id 1 and status OPEN
        stmt = update(GroupBuyModel).where(
            GroupBuyModel.id == group_buy_id,
            GroupBuyModel.status == old_status,
        )
        if deadline_before is not None:
            stmt = stmt.where(GroupBuyModel.deadline <= deadline_before)
        res = self.db.execute(
            stmt.values(**new_data).execution_options(synchronize_session=False)
        )
        return res.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
