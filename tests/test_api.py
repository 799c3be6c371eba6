"""End-to-end tests for the REST API against an in-memory database."""

import pytest


def _bet(bookmaker_id, **overrides):
    payload = {
        "bookmaker_id": bookmaker_id,
        "bet_type": "layBet",
        "bet_date": "2024-03-02",
        "event_date": "2024-03-03",
        "event": "Real Madrid v Sevilla",
        "bet": "Real Madrid",
        "stake": 100,
        "odds": 2.5,
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_root(client):
    assert client.get("/").json()["status"] == "operational"

def test_health_with_scheduler_disabled(client):
    body = client.get("/health").json()
    assert body["database"] == "connected"
    assert body["scheduler"] == "disabled"

def test_scheduler_status_disabled(client):
    assert client.get("/admin/scheduler/status").json() == {"running": False, "jobs": []}


# ---------------------------------------------------------------------------
# Bookmakers
# ---------------------------------------------------------------------------

def test_duplicate_bookmaker_name_conflicts(client, bookmaker):
    r = client.post("/api/bookmakers", json={"name": "Exchange", "type": "regular", "commission": 0})
    assert r.status_code == 409

def test_unknown_bookmaker_is_404(client):
    assert client.get("/api/bookmakers/999").status_code == 404
    assert client.get("/api/bookmakers/999/balance").status_code == 404

def test_bookmaker_commission_out_of_range(client):
    r = client.post("/api/bookmakers", json={"name": "X", "type": "regular", "commission": 150})
    assert r.status_code == 422

def test_delete_bookmaker_with_bets_conflicts(client, bookmaker):
    client.post("/api/bets", json=_bet(bookmaker["id"]))
    r = client.delete(f"/api/bookmakers/{bookmaker['id']}")
    assert r.status_code == 409
    assert "bets" in r.json()["detail"]

def test_delete_empty_bookmaker(client, bookmaker):
    assert client.delete(f"/api/bookmakers/{bookmaker['id']}").status_code == 200
    assert client.get(f"/api/bookmakers/{bookmaker['id']}").status_code == 404


# ---------------------------------------------------------------------------
# Bet lifecycle
# ---------------------------------------------------------------------------

def test_create_lay_bet_computes_liability(client, bookmaker):
    r = client.post("/api/bets", json=_bet(bookmaker["id"]))
    assert r.status_code == 201
    bet = r.json()
    assert bet["status"] == "pending"
    assert bet["liability"] == pytest.approx(150.0)
    assert bet["result"] == 0
    assert bet["bookmaker_name"] == "Exchange"

def test_client_cannot_set_result(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"], result=1000, liability=0)).json()
    assert bet["result"] == 0
    assert bet["liability"] == pytest.approx(150.0)

def test_settle_lay_win_applies_commission(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    r = client.put(f"/api/bets/{bet['id']}/settle", json={"status": "won"})
    assert r.status_code == 200
    settled = r.json()
    assert settled["result"] == pytest.approx(95.0)
    assert settled["liability"] == 0

def test_settle_twice_conflicts(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    client.put(f"/api/bets/{bet['id']}/settle", json={"status": "lost"})
    r = client.put(f"/api/bets/{bet['id']}/settle", json={"status": "won"})
    assert r.status_code == 409
    assert client.get(f"/api/bets/{bet['id']}").json()["result"] == pytest.approx(-150.0)

def test_settle_to_pending_rejected(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    assert client.put(f"/api/bets/{bet['id']}/settle", json={"status": "pending"}).status_code == 422

def test_settled_bet_cannot_be_deleted(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    client.put(f"/api/bets/{bet['id']}/settle", json={"status": "won"})
    assert client.delete(f"/api/bets/{bet['id']}").status_code == 409

def test_pending_bet_can_be_deleted(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    assert client.delete(f"/api/bets/{bet['id']}").status_code == 200
    assert client.get(f"/api/bets/{bet['id']}").status_code == 404

def test_settled_bet_stake_frozen(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    client.put(f"/api/bets/{bet['id']}/settle", json={"status": "won"})
    r = client.put(f"/api/bets/{bet['id']}", json={"stake": 500})
    assert r.status_code == 409
    assert "stake" in r.json()["detail"]

def test_settled_bet_notes_editable(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    client.put(f"/api/bets/{bet['id']}/settle", json={"status": "won"})
    r = client.put(f"/api/bets/{bet['id']}", json={"info": "cashed out", "stake": 100})
    assert r.status_code == 200
    assert r.json()["info"] == "cashed out"
    assert r.json()["result"] == pytest.approx(95.0)

def test_pending_update_recomputes_liability(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    updated = client.put(f"/api/bets/{bet['id']}", json={"odds": 3.0}).json()
    assert updated["liability"] == pytest.approx(200.0)

def test_odds_kept_at_stored_precision(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"], odds=2.5555)).json()
    assert bet["odds"] == pytest.approx(2.556)
    assert bet["liability"] == pytest.approx(155.60)

    noted = client.put(f"/api/bets/{bet['id']}", json={"info": "note"}).json()
    assert noted["liability"] == pytest.approx(155.60)

def test_resubmitted_status_keeps_settled_result(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"], bet_type="backBet", status="won")).json()
    assert bet["result"] == pytest.approx(142.50)

    client.put(f"/api/bookmakers/{bookmaker['id']}", json={"commission": 0})
    r = client.put(f"/api/bets/{bet['id']}", json={"status": "won"})
    assert r.status_code == 200
    assert r.json()["result"] == pytest.approx(142.50)

def test_invalid_odds_rejected(client, bookmaker):
    assert client.post("/api/bets", json=_bet(bookmaker["id"], odds=1.0)).status_code == 422

def test_unknown_bet_type_rejected(client, bookmaker):
    assert client.post("/api/bets", json=_bet(bookmaker["id"], bet_type="parlay")).status_code == 422

def test_bet_for_unknown_bookmaker(client):
    assert client.post("/api/bets", json=_bet(42)).status_code == 404


# ---------------------------------------------------------------------------
# Bet queries
# ---------------------------------------------------------------------------

def test_filters_and_pagination(client, bookmaker):
    for i in range(3):
        client.post("/api/bets", json=_bet(bookmaker["id"], bet_type="backBet", bet_date=f"2024-03-0{i + 1}"))
    client.post("/api/bets", json=_bet(bookmaker["id"], bet_date="2024-04-01"))

    assert len(client.get("/api/bets/type/backBet").json()) == 3
    assert len(client.get("/api/bets", params={"limit": 2, "page": 2}).json()) == 2
    assert len(client.get("/api/bets/period/2024-03-01/2024-03-02").json()) == 2
    assert client.get("/api/bets/period/2024-03-05/2024-03-01").status_code == 422
    assert client.get("/api/bets/type/parlay").status_code == 422

def test_monthly_summary(client, bookmaker):
    bet = client.post("/api/bets", json=_bet(bookmaker["id"])).json()
    client.put(f"/api/bets/{bet['id']}/settle", json={"status": "won"})
    rows = client.get("/api/bets/summary/monthly").json()
    assert rows[0]["month"] == "2024-03"
    assert rows[0]["win_rate"] == pytest.approx(100.0)


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------

def test_bookmaker_balance(client, bookmaker):
    bm_id = bookmaker["id"]
    client.post("/api/transactions", json={"bookmaker_id": bm_id, "date": "2024-03-01", "type": "deposit", "amount": 200})
    client.post("/api/transactions", json={"bookmaker_id": bm_id, "date": "2024-03-04", "type": "withdrawal", "amount": 50})
    won = client.post("/api/bets", json=_bet(bm_id)).json()
    client.put(f"/api/bets/{won['id']}/settle", json={"status": "won"})
    client.post("/api/bets", json=_bet(bm_id))  # pending, liability 150

    body = client.get(f"/api/bookmakers/{bm_id}/balance").json()
    assert body["breakdown"]["total_results"] == pytest.approx(95.0)
    assert body["breakdown"]["total_liability"] == pytest.approx(150.0)
    # 100 + 200 - 50 + 95 - 150
    assert body["balance"] == pytest.approx(195.0)

def test_period_balance_endpoint(client, bookmaker):
    client.post("/api/transactions", json={
        "bookmaker_id": bookmaker["id"], "date": "2024-03-10", "type": "deposit", "amount": 80,
    })
    body = client.get("/api/transactions/balance/2024-03-01/2024-03-31").json()
    assert body["total_balance"] == pytest.approx(80.0)
    assert body["by_bookmaker"][0]["bookmaker_name"] == "Exchange"

def test_deposit_summary(client, bookmaker):
    client.post("/api/transactions", json={
        "bookmaker_id": bookmaker["id"], "date": "2024-03-10", "type": "deposit", "amount": 80,
    })
    body = client.get("/api/transactions/summary/deposits").json()
    assert body["totals"]["count"] == 1
    assert body["by_bookmaker"][0]["percentage_of_total"] == pytest.approx(100.0)

def test_negative_amount_rejected(client, bookmaker):
    r = client.post("/api/transactions", json={
        "bookmaker_id": bookmaker["id"], "date": "2024-03-10", "type": "deposit", "amount": -5,
    })
    assert r.status_code == 422


# ---------------------------------------------------------------------------
# Freebets & snapshots
# ---------------------------------------------------------------------------

def test_freebet_routes(client, bookmaker):
    r = client.post("/api/freebets", json={
        "bookmaker_id": bookmaker["id"], "date": "2024-03-10", "type": "bet-and-get",
        "amount": 25, "event": "Real Madrid v Sevilla", "status": "received",
    })
    assert r.status_code == 201
    assert len(client.get("/api/freebets/value/20").json()) == 1
    assert client.get("/api/freebets/value/30").json() == []
    assert client.get("/api/freebets/expiring").status_code == 200
    assert client.get("/api/freebets/conversion-rate").json()["totals"]["total_freebets"] == 1
    assert client.get("/api/freebets/status/bogus").status_code == 422

def test_manual_snapshot(client, bookmaker):
    r = client.post("/admin/snapshot")
    assert r.json()["bookmakers"] == 1
    snaps = client.get("/api/snapshots").json()
    assert snaps[0]["balance"] == pytest.approx(100.0)
