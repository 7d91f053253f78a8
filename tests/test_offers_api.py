from conftest import auth


def _url(market, investor_id, action):
    return f"/offers/{market.round_id}/{investor_id}/{action}"


# ── Accept / reject ──

def test_founder_accepts_offer(client, seeded):
    res = client.post(_url(seeded, seeded.ben_id, "accept"), headers=auth(seeded.founder_user_id))

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["offer"]["status"] == "accepted"
    assert body["offer"]["acceptedAt"]

    cap = client.get(f"/funding-rounds/{seeded.round_id}/cap-table", headers=auth(seeded.founder_user_id)).json()
    shares = {row["type"]: row["percentage"] for row in cap["shareholders"]}
    assert shares == {"Founders": 80, "Investors": 5, "Option Pool": 15}
    assert len(cap["entries"]) == 1
    assert cap["entries"][0]["investment"] == 250000


def test_investor_cannot_accept_own_offer(client, seeded):
    res = client.post(_url(seeded, seeded.ben_id, "accept"), headers=auth(seeded.ben_user_id))
    assert res.status_code == 403


def test_actions_require_a_session(client, seeded):
    res = client.post(_url(seeded, seeded.ben_id, "accept"))
    assert res.status_code == 401


def test_accept_missing_offer_is_404(client, seeded):
    res = client.post(_url(seeded, seeded.cleo_id, "accept"), headers=auth(seeded.founder_user_id))

    assert res.status_code == 404
    assert res.json()["detail"] == "Offer not found"


def test_unknown_round_is_404(client, seeded):
    res = client.post(f"/offers/no-such-round/{seeded.ben_id}/accept", headers=auth(seeded.founder_user_id))
    assert res.status_code == 404


def test_reject_after_accept_conflicts(client, seeded):
    founder = auth(seeded.founder_user_id)
    client.post(_url(seeded, seeded.ben_id, "accept"), headers=founder)

    res = client.post(_url(seeded, seeded.ben_id, "reject"), headers=founder)

    assert res.status_code == 409
    assert "accepted" in res.json()["detail"]


def test_accept_twice_is_harmless(client, seeded):
    founder = auth(seeded.founder_user_id)
    client.post(_url(seeded, seeded.ben_id, "accept"), headers=founder)

    res = client.post(_url(seeded, seeded.ben_id, "accept"), headers=founder)

    assert res.status_code == 200
    cap = client.get(f"/funding-rounds/{seeded.round_id}/cap-table", headers=founder).json()
    assert len(cap["entries"]) == 1


# ── Counter ──

def test_founder_counter_updates_terms(client, seeded):
    res = client.post(
        _url(seeded, seeded.ben_id, "counter"),
        json={"amount": 200000, "equity": 8},
        headers=auth(seeded.founder_user_id),
    )

    assert res.status_code == 200
    offer = res.json()["offer"]
    assert offer["status"] == "countered"
    assert offer["amount"] == 200000
    assert offer["equityPercentage"] == 8
    assert offer["impliedValuation"] == 2500000


def test_counter_validates_terms(client, seeded):
    founder = auth(seeded.founder_user_id)
    url = _url(seeded, seeded.ben_id, "counter")

    assert client.post(url, json={"amount": 0, "equity": 5}, headers=founder).status_code == 422
    assert client.post(url, json={"amount": 1000, "equity": 0}, headers=founder).status_code == 422
    assert client.post(url, json={"amount": 1000, "equity": 101}, headers=founder).status_code == 422


def test_outsider_cannot_counter(client, seeded):
    res = client.post(
        _url(seeded, seeded.ben_id, "counter"),
        json={"amount": 1000, "equity": 1},
        headers=auth(seeded.outsider_user_id),
    )
    assert res.status_code == 403


def test_investor_counter_notifies_founder(client, seeded):
    client.post(
        _url(seeded, seeded.ben_id, "counter"),
        json={"amount": 300000, "equity": 6},
        headers=auth(seeded.ben_user_id),
    )

    body = client.get("/notifications", headers=auth(seeded.founder_user_id)).json()
    assert body["unreadCount"] == 1
    assert "Ben Capital countered with $300,000 for 6%" in body["notifications"][0]["message"]


# ── Interest / propose / history ──

def test_interest_then_proposal_builds_history(client, seeded):
    cleo = auth(seeded.cleo_user_id)

    first = client.post(_url(seeded, seeded.cleo_id, "interest"), headers=cleo)
    again = client.post(_url(seeded, seeded.cleo_id, "interest"), headers=cleo)
    assert first.json()["offer"]["status"] == "reviewing"
    assert first.json()["offer"]["id"] == again.json()["offer"]["id"]

    proposed = client.post(_url(seeded, seeded.cleo_id, "propose"), json={"amount": 100000, "equity": 2}, headers=cleo)
    assert proposed.status_code == 200
    assert proposed.json()["offer"]["status"] == "offered"

    history = client.get(_url(seeded, seeded.cleo_id, "history"), headers=auth(seeded.founder_user_id)).json()
    assert [e["action"] for e in history] == ["interest", "propose"]
    assert history[1]["statusAfter"] == "offered"
    assert history[1]["actorUserId"] == seeded.cleo_user_id


def test_interest_is_investor_only(client, seeded):
    res = client.post(_url(seeded, seeded.cleo_id, "interest"), headers=auth(seeded.founder_user_id))
    assert res.status_code == 403


# ── Funding round views ──

def test_round_detail_shows_progress_and_investors(client, seeded):
    founder = auth(seeded.founder_user_id)
    client.post(_url(seeded, seeded.ben_id, "accept"), headers=founder)

    body = client.get(f"/funding-rounds/{seeded.round_id}", headers=founder).json()

    assert body["impliedValuation"] == 6250000
    assert body["progress"]["raised"] == 250000
    assert body["progress"]["percentage"] == 50
    assert body["progress"]["oversubscribed"] is False
    [ben] = body["interestedInvestors"]
    assert ben["name"] == "Ben Capital"
    assert ben["status"] == "accepted"
    assert ben["offer"] == {"amount": 250000, "equity": 5, "valuation": 5000000}


def test_reviewing_investor_has_no_terms(client, seeded):
    client.post(_url(seeded, seeded.cleo_id, "interest"), headers=auth(seeded.cleo_user_id))

    body = client.get(f"/funding-rounds/{seeded.round_id}", headers=auth(seeded.founder_user_id)).json()

    statuses = {i["name"]: (i["status"], i["offer"]) for i in body["interestedInvestors"]}
    assert statuses["Cleo Angel"] == ("reviewing", None)


def test_current_round_for_founder(client, seeded):
    res = client.get("/funding-rounds/current", headers=auth(seeded.founder_user_id))

    assert res.status_code == 200
    assert res.json()["id"] == seeded.round_id
    assert client.get("/funding-rounds/current", headers=auth(seeded.ben_user_id)).status_code == 403


# ── Users / notifications ──

def test_users_me(client, seeded):
    body = client.get("/users/me", headers=auth(seeded.founder_user_id)).json()

    assert body["id"] == seeded.founder_user_id
    assert body["role"] == "founder"
    assert body["startupId"] == seeded.startup_id
    assert body["investorId"] is None

    ben = client.get("/users/me", headers=auth(seeded.ben_user_id)).json()
    assert ben["investorId"] == seeded.ben_id

    profile = client.get(f"/users/{seeded.ben_user_id}", headers=auth(seeded.founder_user_id)).json()
    assert profile["name"] == "Ben Capital"
    assert "email" not in profile
    assert client.get("/users/me").status_code == 401


def test_accept_notification_can_be_marked_read(client, seeded):
    client.post(_url(seeded, seeded.ben_id, "accept"), headers=auth(seeded.founder_user_id))
    ben = auth(seeded.ben_user_id)

    body = client.get("/notifications", headers=ben).json()
    assert body["unreadCount"] == 1
    notif = body["notifications"][0]
    assert notif["link"] == f"/funding-rounds/{seeded.round_id}"

    marked = client.post(f"/notifications/read/{notif['id']}", headers=ben).json()
    assert marked == {"ok": True, "link": notif["link"], "updated": 1}
    assert client.get("/notifications", headers=ben).json()["unreadCount"] == 0


def test_read_all_clears_inbox(client, seeded):
    founder = auth(seeded.founder_user_id)
    client.post(_url(seeded, seeded.cleo_id, "interest"), headers=auth(seeded.cleo_user_id))
    client.post(_url(seeded, seeded.cleo_id, "propose"), json={"amount": 50000, "equity": 1}, headers=auth(seeded.cleo_user_id))

    unread = client.get("/notifications?unread=true", headers=founder).json()
    assert unread["unreadCount"] == 2
    assert [n["message"][0] for n in unread["notifications"]] == ["💰", "👀"]

    assert client.post("/notifications/read-all", headers=founder).json()["updated"] == 2
    assert client.get("/notifications?unread=true", headers=founder).json()["notifications"] == []
    assert client.get("/notifications").status_code == 401


def test_expired_session_is_anonymous(client, seeded):
    from datetime import timedelta

    from app.routers.auth import COOKIE_KEY, create_access_token

    stale = create_access_token(seeded.founder_user_id, expires_in=timedelta(seconds=-1))
    res = client.get("/users/me", headers={"Cookie": f"{COOKIE_KEY}={stale}"})

    assert res.status_code == 401


def test_storage_failure_on_accept_is_500_and_rolled_back(client, seeded, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from app.services import negotiation

    async def broken_insert(*args, **kwargs):
        raise OperationalError("INSERT INTO cap_table_entries", {}, Exception("disk I/O error"))

    monkeypatch.setattr(negotiation, "insert_cap_table_entry", broken_insert)
    founder = auth(seeded.founder_user_id)

    res = client.post(_url(seeded, seeded.ben_id, "accept"), headers=founder)

    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to accept investment offer"
    [ben] = client.get(f"/funding-rounds/{seeded.round_id}", headers=founder).json()["interestedInvestors"]
    assert ben["status"] == "offered"
    cap = client.get(f"/funding-rounds/{seeded.round_id}/cap-table", headers=founder).json()
    assert cap["entries"] == []
    assert client.get("/notifications", headers=auth(seeded.ben_user_id)).json()["unreadCount"] == 0
