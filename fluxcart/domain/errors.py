# fluxcart/domain/errors.py


class DomainError(Exception):
    """Bazowy wyjatek warstwy serwisow, routery tlumacza go na HTTP."""


class ValidationError(DomainError, ValueError):
    pass


class EmptyCartError(ValidationError):
    def __init__(self, message: str = "Cart empty"):
        super().__init__(message)


class PaymentNotCompletedError(ValidationError):
    pass


class NotFoundError(DomainError, LookupError):
    # ten sam komunikat dla "nie istnieje" i "nie twoje"
    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ConflictError(DomainError):
    pass


class InvalidStateError(DomainError):
    pass


class ClosedError(InvalidStateError):
    def __init__(self, message: str = "Closed"):
        super().__init__(message)


class PaymentVerificationError(DomainError):
    pass


class ExternalUnavailableError(DomainError):
    pass
