# fluxcart/services/notification_service.py
from fluxcart.celery_worker import celery_app
from fluxcart.data.database import SessionLocal
from fluxcart.services import mailer
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien.
    Uzywa Celery do asynchronicznego przetwarzania, poza cyklem requestu.
    Bledy sa logowane i nie wracaja do wywolujacego.
    """

    def send_order_receipt(self, order_id: int):
        try:
            send_order_receipt_task.delay(order_id)
        except Exception as e:
            logger.warning(f"Nie udalo sie zlecic potwierdzenia zamowienia {order_id}: {e}")

    def send_group_buy_outcome(self, group_buy_id: int, status: str):
        try:
            send_group_buy_outcome_task.delay(group_buy_id, status)
        except Exception as e:
            logger.warning(f"Nie udalo sie zlecic powiadomienia dla group-buy {group_buy_id}: {e}")


@celery_app.task(name="fluxcart.services.notification_service.send_order_receipt_task")
def send_order_receipt_task(order_id: int):
    """
    Celery task - potwierdzenie zamowienia mailem (HTML + tekst).
    Brak konfiguracji SMTP = pomijamy.
    """
    if not mailer.is_configured():
        logger.info(f"[NOTIFICATION] Email not configured, skipping receipt for order {order_id}")
        return {"order_id": order_id, "status": "skipped"}

    db = SessionLocal()
    try:
        sent = mailer.send_order_receipt(db, order_id)
    except Exception as e:
        logger.warning(f"Failed to send order email for order {order_id}: {e}")
        return {"order_id": order_id, "status": "failed"}
    finally:
        db.close()

    return {"order_id": order_id, "status": "sent" if sent else "skipped"}


@celery_app.task(name="fluxcart.services.notification_service.send_group_buy_outcome_task")
def send_group_buy_outcome_task(group_buy_id: int, status: str):
    """
    Celery task - na razie tylko loguje wynik rozliczenia group-buy.
    """
    logger.info(f"[NOTIFICATION] Group-buy {group_buy_id} settled as {status}")
    return {"group_buy_id": group_buy_id, "status": status}
