# fluxcart/services/payment_gateway.py
from typing import Any, Dict, List

import stripe

from fluxcart.domain.checkout import CheckoutLine, PaymentSession, PaymentSessionStatus
from fluxcart.domain.errors import ExternalUnavailableError, PaymentVerificationError
from fluxcart.utils.retry import stripe_retry
from fluxcart.utils.settings import STRIPE_SECRET, STRIPE_WEBHOOK_SECRET
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)

COMPLETED_EVENT = "checkout.session.completed"


class StripePaymentGateway:
    """
    Hostowana sesja platnosci Stripe:
    - tworzenie sesji z pozycjami i metadanymi
    - odczyt statusu sesji po referencji
    - weryfikacja podpisu webhooka
    """

    def __init__(self, api_key: str, webhook_secret: str = ""):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_session(
        self,
        lines: List[CheckoutLine],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> PaymentSession:
        line_items = [
            {
                "price_data": {
                    "currency": (line.currency or "INR").lower(),
                    "product_data": {
                        "name": line.title,
                        "images": [line.image] if line.image else [],
                    },
                    "unit_amount": line.unit_price_cents,
                },
                "quantity": line.qty,
            }
            for line in lines
        ]
        try:
            session = self._create(
                mode="payment",
                line_items=line_items,
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.APIConnectionError as e:
            # retry wyczerpany
            logger.error(f"Stripe unreachable, session not created: {e}")
            raise ExternalUnavailableError("Payment provider unavailable") from e
        except stripe.StripeError as e:
            logger.error(f"Stripe create session failed: {e}")
            raise ExternalUnavailableError("Payment provider rejected the session") from e

        logger.info(f"Stripe session {session.id} created")
        return PaymentSession(reference=session.id, url=session.url)

    def retrieve_session(self, reference: str) -> PaymentSessionStatus:
        try:
            session = self._retrieve(reference)
        except stripe.APIConnectionError as e:
            logger.error(f"Stripe unreachable, session {reference} not retrieved: {e}")
            raise ExternalUnavailableError("Payment provider unavailable") from e
        except stripe.InvalidRequestError as e:
            raise PaymentVerificationError(f"Unknown payment session {reference}") from e
        except stripe.StripeError as e:
            raise ExternalUnavailableError("Payment provider unavailable") from e
        return session_status(session)

    #tylko bledy sieci sa ponawiane, reszta wychodzi od razu
    @stripe_retry()
    def _create(self, **params):
        return stripe.checkout.Session.create(api_key=self.api_key, **params)

    @stripe_retry()
    def _retrieve(self, reference: str):
        return stripe.checkout.Session.retrieve(reference, api_key=self.api_key)

    def construct_event(self, payload: bytes, signature: str | None) -> Dict[str, Any]:
        #fail closed - bez podpisu albo sekretu nic nie przetwarzamy
        if not signature or not self.webhook_secret:
            raise PaymentVerificationError("Missing signature/secret")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Stripe signature verify failed: {e}")
            raise PaymentVerificationError("Bad signature") from e
        return as_dict(event)


def as_dict(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    to_dict = getattr(obj, "to_dict", None) or getattr(obj, "to_dict_recursive", None)
    if to_dict is not None:
        return to_dict()
    return dict(obj)


def session_status(session: Any) -> PaymentSessionStatus:
    """Stripe session (obiekt lub dict z eventu) -> status domenowy."""
    session = as_dict(session)
    metadata = session.get("metadata") or {}
    payment_status = session.get("payment_status") or ""
    return PaymentSessionStatus(
        reference=session["id"],
        paid=payment_status == "paid",
        payment_status=payment_status,
        metadata={str(k): str(v) for k, v in as_dict(metadata).items()},
    )


def get_payment_gateway() -> StripePaymentGateway | None:
    # brak klucza = checkout symulowany
    if not STRIPE_SECRET:
        return None
    return StripePaymentGateway(STRIPE_SECRET, STRIPE_WEBHOOK_SECRET)
