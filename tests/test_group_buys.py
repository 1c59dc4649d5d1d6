from datetime import timedelta

import pytest

from conftest import ALICE, BOB, later
from fluxcart.data.models.group_buy import GroupBuyModel
from fluxcart.domain.errors import ClosedError, NotFoundError, ValidationError
from fluxcart.repos.cart_repo import CartRepo
from fluxcart.repos.group_buy_repo import GroupBuyRepo
from fluxcart.services.group_buy_service import GroupBuyService
from fluxcart.utils.clock import utcnow


@pytest.fixture
def svc(db, notifier):
    return GroupBuyService(db, notifier)


@pytest.fixture
def users(ctx_for):
    return [ctx_for(f"user{i}@example.com") for i in range(3)]


def test_create_validates_input(svc, users, make_product):
    p = make_product()
    with pytest.raises(ValidationError):
        svc.create(users[0], p.id, 0, later())
    with pytest.raises(ValidationError):
        svc.create(users[0], p.id, 2, utcnow() - timedelta(minutes=1))
    with pytest.raises(NotFoundError):
        svc.create(users[0], 999, 2, later())

    gb = svc.create(users[0], p.id, 2, later())
    assert gb.status == "OPEN"
    assert gb.creator_id == users[0].user_id


def test_join_is_idempotent(svc, users, make_product):
    gb = svc.create(users[0], make_product().id, 3, later())

    assert svc.join(users[1], gb.id) == (True, 1)
    assert svc.join(users[1], gb.id) == (False, 1)
    assert svc.join(users[2], gb.id) == (True, 2)


def test_join_after_deadline_is_closed(svc, users, make_product):
    gb = svc.create(users[0], make_product().id, 2, later(10))

    with pytest.raises(ClosedError):
        svc.join(users[1], gb.id, now=later(11))


def test_join_settled_group_buy_is_closed(svc, db, users, make_product):
    gb = svc.create(users[0], make_product().id, 1, later(10))
    svc.join(users[1], gb.id)
    svc.settle(gb.id, now=later(11))

    with pytest.raises(ClosedError):
        svc.join(users[2], gb.id)


def test_join_unknown_group_buy(svc, users):
    with pytest.raises(NotFoundError):
        svc.join(users[0], 12345)


def test_list_open_orders_by_deadline_with_counts(svc, users, make_product):
    p, other = make_product(), make_product()
    late = svc.create(users[0], p.id, 2, later(120))
    soon = svc.create(users[0], p.id, 2, later(30))
    expired = svc.create(users[0], p.id, 2, later(5))
    svc.create(users[0], other.id, 2, later(30))
    svc.join(users[1], soon.id)
    svc.join(users[2], soon.id)

    rows = svc.list_open(p.id, now=later(10))
    assert [(gb.id, count) for gb, count in rows] == [(soon.id, 2), (late.id, 0)]
    assert expired.id not in [gb.id for gb, _ in rows]


def test_settle_below_minimum_fails_and_releases_intents(svc, db, users, make_product, notifier):
    gb = svc.create(users[0], make_product().id, 3, later(10))
    svc.join(users[1], gb.id)
    svc.join(users[2], gb.id)

    result = svc.settle(gb.id, now=later(11))

    assert result.status == "FAILED"
    assert result.participants == 2
    repo = GroupBuyRepo(db)
    assert repo.count_participants(gb.id, intent_only=True) == 0
    assert repo.count_participants(gb.id) == 2
    assert CartRepo(db).get_cart_items(users[1].user_id) == []
    assert notifier.outcomes == [(gb.id, "FAILED")]

    db.expire_all()
    settled = db.get(GroupBuyModel, gb.id)
    assert settled.status == "FAILED"
    assert settled.settled_at is not None


def test_settle_reaching_minimum_fills_carts(svc, db, users, make_product, notifier):
    p = make_product()
    gb = svc.create(users[0], p.id, 3, later(10))
    for ctx in users:
        svc.join(ctx, gb.id)

    result = svc.settle(gb.id, now=later(11))

    assert result.status == "SUCCESS"
    for ctx in users:
        items = CartRepo(db).get_cart_items(ctx.user_id)
        assert len(items) == 1
        assert items[0].product_id == p.id
        assert items[0].kind == "BUY"
        assert items[0].hold_id == f"gb_{gb.id}_{ctx.user_id}"
    assert notifier.outcomes == [(gb.id, "SUCCESS")]


def test_settle_runs_once(svc, users, make_product, notifier):
    gb = svc.create(users[0], make_product().id, 1, later(10))
    svc.join(users[1], gb.id)

    assert svc.settle(gb.id, now=later(11)) is not None
    assert svc.settle(gb.id, now=later(12)) is None
    assert len(notifier.outcomes) == 1


def test_settle_before_deadline_is_noop(svc, db, users, make_product):
    gb = svc.create(users[0], make_product().id, 1, later(10))

    assert svc.settle(gb.id, now=later(5)) is None
    db.expire_all()
    assert db.get(GroupBuyModel, gb.id).status == "OPEN"


def test_failed_evaluation_reopens_group_buy(svc, db, users, make_product, monkeypatch):
    gb = svc.create(users[0], make_product().id, 1, later(10))

    def boom(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(svc, "_evaluate", boom)
    with pytest.raises(RuntimeError):
        svc.settle(gb.id, now=later(11))

    db.expire_all()
    assert db.get(GroupBuyModel, gb.id).status == "OPEN"


def test_settle_expired_only_touches_expired(svc, users, make_product):
    p = make_product()
    a = svc.create(users[0], p.id, 1, later(5))
    b = svc.create(users[0], p.id, 1, later(6))
    c = svc.create(users[0], p.id, 1, later(60))
    svc.join(users[1], a.id)

    results = svc.settle_expired(now=later(10))

    assert {(r.group_buy_id, r.status) for r in results} == {(a.id, "SUCCESS"), (b.id, "FAILED")}
    assert c.id not in [r.group_buy_id for r in results]


def test_api_list_requires_product_id(client):
    resp = client.get("/group-buys")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "productId required"


def test_api_create_join_and_read(client, make_product):
    p = make_product()
    deadline = later(60).isoformat()

    created = client.post(
        "/group-buys",
        json={"product_id": p.id, "min_participants": 2, "deadline": deadline},
        headers=ALICE,
    )
    assert created.status_code == 200
    gb_id = created.json()["id"]
    assert created.json()["participant_count"] == 0

    first = client.post(f"/group-buys/{gb_id}/join", headers=BOB).json()
    again = client.post(f"/group-buys/{gb_id}/join", headers=BOB).json()
    assert first == {"ok": True, "joined": True, "participant_count": 1}
    assert again == {"ok": True, "joined": False, "participant_count": 1}

    listed = client.get(f"/group-buys?productId={p.id}").json()
    assert [(g["id"], g["participant_count"]) for g in listed] == [(gb_id, 1)]
    assert client.get(f"/group-buys/{gb_id}").json()["status"] == "OPEN"


def test_api_create_rejects_past_deadline(client, make_product):
    p = make_product()
    resp = client.post(
        "/group-buys",
        json={"product_id": p.id, "min_participants": 2, "deadline": later(-5).isoformat()},
        headers=ALICE,
    )
    assert resp.status_code == 400


def test_api_join_closed_is_400(client, db, make_product, notifier):
    p = make_product()
    gb_id = client.post(
        "/group-buys",
        json={"product_id": p.id, "min_participants": 1, "deadline": later(10).isoformat()},
        headers=ALICE,
    ).json()["id"]
    GroupBuyService(db, notifier).settle(gb_id, now=later(11))

    resp = client.post(f"/group-buys/{gb_id}/join", headers=BOB)
    assert resp.status_code == 400
    assert client.post("/group-buys/9999/join", headers=BOB).status_code == 404


def test_join_closed_by_settlement_after_status_read(svc, db, users, make_product, notifier, monkeypatch):
    gb = svc.create(users[0], make_product().id, 2, later(10))
    svc.join(users[1], gb.id)
    lookup = svc.repo.get_participant

    def settle_then_lookup(group_buy_id, user_id):
        # rozliczenie konczy sie miedzy odczytem statusu a zapisem uczestnika
        GroupBuyService(db, notifier).settle(group_buy_id, now=later(11))
        return lookup(group_buy_id, user_id)

    monkeypatch.setattr(svc.repo, "get_participant", settle_then_lookup)
    with pytest.raises(ClosedError):
        svc.join(users[2], gb.id, now=later(5))

    db.expire_all()
    assert db.get(GroupBuyModel, gb.id).status == "FAILED"
    assert GroupBuyRepo(db).count_participants(gb.id) == 1
    assert GroupBuyRepo(db).get_participant(gb.id, users[2].user_id) is None


def test_interrupted_settlement_stays_open_and_is_retried(svc, db, users, make_product, monkeypatch):
    gb = svc.create(users[0], make_product().id, 1, later(10))
    svc.join(users[1], gb.id)

    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt()

    monkeypatch.setattr(svc, "_evaluate", interrupted)
    with pytest.raises(KeyboardInterrupt):
        svc.settle(gb.id, now=later(11))

    db.expire_all()
    assert db.get(GroupBuyModel, gb.id).status == "OPEN"

    monkeypatch.undo()
    results = svc.settle_expired(now=later(600))
    assert [(r.group_buy_id, r.status) for r in results] == [(gb.id, "SUCCESS")]
