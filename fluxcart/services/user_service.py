import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fluxcart.data.models.user import UserModel
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import ConflictError, NotFoundError, ValidationError
from fluxcart.repos.user_repo import UserRepo
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)

PHONE_RE = re.compile(r"^\+?\d{7,15}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _masked_phone_name(phone: str) -> str:
    m = re.match(r"^\+?(\d{2})\d+$", phone)
    return f"+{m.group(1)}•••" if m else phone


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def resolve_user(self, identifier: str) -> UserModel:
        """
        Mapuje identyfikator z requestu (email, telefon lub token dev)
        na trwaly rekord uzytkownika, tworzac go przy pierwszym uzyciu.
        """
        ident = (identifier or "").strip()
        if not ident:
            raise ValidationError("Missing user identifier")

        if EMAIL_RE.match(ident):
            return self._get_or_create(
                lambda: self.repo.get_by_email(ident),
                lambda: UserModel(email=ident, name=ident.split("@")[0]),
            )

        if PHONE_RE.match(ident):
            return self._get_or_create(
                lambda: self.repo.get_by_phone(ident),
                lambda: UserModel(phone=ident, name=_masked_phone_name(ident)),
            )

        alias = ident[:12] or "dev"
        email = f"{alias}@dev.local"
        return self._get_or_create(
            lambda: self.repo.get_by_email(email),
            lambda: UserModel(email=email, name="Dev User"),
        )

    def _get_or_create(self, lookup, factory) -> UserModel:
        existing = lookup()
        if existing:
            return existing
        try:
            created = self.repo.create_user(factory())
        except IntegrityError:
            # rownolegly request utworzyl tego samego usera
            self.repo.rollback()
            existing = lookup()
            if not existing:
                raise
            return existing
        logger.info(f"Utworzono uzytkownika {created.id}")
        return created

    def context_for(self, identifier: str) -> RequestContext:
        user = self.resolve_user(identifier)
        return RequestContext(user_id=user.id, identifier=identifier.strip())

    def find_by_identifier(self, identifier: str) -> UserModel | None:
        """Tylko dokladne dopasowanie, bez tworzenia."""
        ident = (identifier or "").strip()
        if EMAIL_RE.match(ident):
            return self.repo.get_by_email(ident)
        if PHONE_RE.match(ident):
            return self.repo.get_by_phone(ident)
        return None

    def get_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, ctx: RequestContext, name: str | None = None, phone: str | None = None) -> UserModel:
        """
        Zmiana imienia i telefonu. Pola None zostaja bez zmian.
        Telefon zajety przez innego uzytkownika -> ConflictError (409).
        """
        user = self.get_user(ctx.user_id)

        if phone is not None:
            phone = phone.strip()
            if not PHONE_RE.match(phone):
                raise ValidationError("Invalid phone")
            owner = self.repo.get_by_phone(phone)
            if owner and owner.id != user.id:
                raise ConflictError("Phone is already in use by another account")
            user.phone = phone
        if name is not None:
            user.name = name.strip()[:120] or user.name

        try:
            user = self.repo.save(user)
        except IntegrityError:
            # ten sam telefon zapisany rownolegle
            self.repo.rollback()
            raise ConflictError("Phone is already in use by another account")

        logger.info(f"Profil uzytkownika {user.id} zaktualizowany")
        return user
