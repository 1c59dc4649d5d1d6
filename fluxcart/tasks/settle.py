# fluxcart/tasks/settle.py
from fluxcart.celery_worker import celery_app
from fluxcart.data.database import SessionLocal
from fluxcart.services.group_buy_service import GroupBuyService
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="fluxcart.tasks.settle.settle_group_buys_task")
def settle_group_buys_task():
    """
    Rozlicza group-buye po terminie. Bezpieczne przy kilku workerach/beatach,
    bo kazdy group-buy przechodzi OPEN -> SETTLING warunkowym updatem.
    """
    logger.info("Settle group-buys task started")

    db = SessionLocal()
    try:
        results = GroupBuyService(db).settle_expired()
    finally:
        db.close()

    return [
        {"group_buy_id": r.group_buy_id, "status": r.status, "participants": r.participants}
        for r in results
    ]
