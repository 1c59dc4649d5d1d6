# fluxcart/repos/checkout_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from fluxcart.data.models.checkout_session import CheckoutSessionModel


class CheckoutRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_session(self, session: CheckoutSessionModel) -> CheckoutSessionModel:
        self.db.add(session)
        self.db.flush()
        return session

    def get_by_reference(self, reference: str) -> CheckoutSessionModel | None:
        return self.db.execute(
            select(CheckoutSessionModel).where(CheckoutSessionModel.reference == reference)
        ).scalar_one_or_none()
