from datetime import timedelta

from fluxcart.data.models.group_buy import GroupBuyModel
from fluxcart.services.group_buy_service import GroupBuyService
from fluxcart.tasks.settle import settle_group_buys_task
from fluxcart.utils.clock import utcnow


def test_task_settles_expired_group_buys(db, ctx_for, make_product, notifier):
    creator, buyer = ctx_for("creator@example.com"), ctx_for("buyer@example.com")
    p = make_product()
    svc = GroupBuyService(db, notifier)

    past = utcnow() - timedelta(hours=2)
    expired = svc.create(creator, p.id, 1, past + timedelta(minutes=30), now=past)
    svc.join(buyer, expired.id, now=past)
    running = svc.create(creator, p.id, 1, utcnow() + timedelta(hours=1))

    results = settle_group_buys_task()

    assert results == [{"group_buy_id": expired.id, "status": "SUCCESS", "participants": 1}]
    db.expire_all()
    assert db.get(GroupBuyModel, expired.id).status == "SUCCESS"
    assert db.get(GroupBuyModel, running.id).status == "OPEN"

    # drugi przebieg nie ma nic do zrobienia
    assert settle_group_buys_task() == []


def test_task_is_scheduled():
    from fluxcart.celery_worker import celery_app

    entry = celery_app.conf.beat_schedule["settle-group-buys"]
    assert entry["task"] == settle_group_buys_task.name
