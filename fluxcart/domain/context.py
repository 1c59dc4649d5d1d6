# fluxcart/domain/context.py
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Tozsamosc ustalona raz na granicy requestu i przekazywana do serwisow."""

    user_id: int
    identifier: str = ""
