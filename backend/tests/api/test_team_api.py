import json

import stripe

from app.repository import company_repo


def test_first_sign_in_creates_user_then_company(client, auth_headers, db):
    headers = auth_headers("new-uid", "founder@example.com", name="Sam Founder")

    me = client.post("/api/auth/firebase-user", headers=headers)
    assert me.status_code == 200, me.text
    assert me.json()["id"] == "new-uid"
    assert (me.json()["firstName"], me.json()["lastName"]) == ("Sam", "Founder")
    assert me.json()["company"] is None

    created = client.post("/api/company/create", json={"name": "Founder Co"}, headers=headers)
    assert created.status_code == 201
    company_id = created.json()["id"]
    assert created.json()["subscriptionPlan"] == "trial" and created.json()["productLimit"] == 5

    me = client.get("/api/auth/user", headers=headers).json()
    assert me["role"] == "owner"
    assert me["company"]["id"] == company_id

    assert client.post("/api/company/create", json={"name": "Second"}, headers=headers).status_code == 409


def test_repeat_sign_in_keeps_company(client, auth_headers, owner, company):
    me = client.post("/api/auth/firebase-user", json={"firstName": "Renamed"}, headers=auth_headers(owner.id, owner.email))
    assert me.json()["firstName"] == "Renamed"
    assert me.json()["company"]["id"] == company.id
    assert me.json()["role"] == "owner"


def test_invite_and_accept(client, auth_headers, owner, company, make_user, db):
    owner_headers = auth_headers(owner.id, owner.email)

    resp = client.post("/api/company/invite", json={"email": "hire@example.com", "role": "admin"}, headers=owner_headers)
    assert resp.status_code == 201, resp.text
    token = resp.json()["token"]
    assert resp.json()["status"] == "pending"

    preview = client.get(f"/api/invitations/{token}")
    assert preview.status_code == 200
    assert preview.json()["companyName"] == company.name

    hire = make_user("hire-uid", email="hire@example.com")
    hire_headers = auth_headers(hire.id, hire.email)
    accepted = client.post(f"/api/invitations/{token}/accept", headers=hire_headers)
    assert accepted.status_code == 200
    assert accepted.json()["companyId"] == company.id

    again = client.post(f"/api/invitations/{token}/accept", headers=hire_headers)
    assert again.status_code == 400
    assert "already been accepted" in again.json()["detail"]

    users = client.get("/api/company/users", headers=owner_headers).json()
    assert {u["id"]: u["role"] for u in users} == {owner.id: "owner", "hire-uid": "admin"}

    invites = client.get("/api/company/invitations", headers=owner_headers).json()
    assert [i["status"] for i in invites] == ["accepted"]


def test_members_cannot_invite(client, auth_headers, company, make_user):
    member = make_user("member-uid", company=company, role="member")
    resp = client.post("/api/company/invite", json={"email": "x@example.com"}, headers=auth_headers(member.id, member.email))
    assert resp.status_code == 403


def test_unknown_invitation(client):
    assert client.get("/api/invitations/does-not-exist").status_code == 404


def test_plans_are_public(client):
    plans = client.get("/api/subscription/plans").json()
    assert [(p["id"], p["productLimit"]) for p in plans] == [("trial", 5), ("starter", 10), ("premium", 1000)]


def test_subscribe_without_stripe_is_unavailable(client, auth_headers, owner):
    resp = client.post("/api/subscription/subscribe", json={"planId": "starter"}, headers=auth_headers(owner.id, owner.email))
    assert resp.status_code == 503


def test_webhook_updates_plan(client, context, db, company, monkeypatch):
    company_repo.update_subscription(db, company.id, stripe_customer_id="cus_1")
    event = {
        "type": "customer.subscription.updated",
        "data": {"object": {"id": "sub_1", "customer": "cus_1", "status": "active",
                            "items": {"data": [{"price": {"id": "price_starter"}}]}}},
    }
    monkeypatch.setattr(context.billing, "construct_event", lambda payload, sig: json.loads(payload))

    resp = client.post("/api/subscription/webhook", content=json.dumps(event), headers={"Stripe-Signature": "t=1,v1=x"})

    assert resp.status_code == 200, resp.text
    row = company_repo.get(db, company.id)
    assert (row.subscription_plan, row.product_limit) == ("starter", 10)


def test_webhook_rejects_bad_signature(client, context, monkeypatch):
    def reject(payload, sig):
        raise stripe.SignatureVerificationError("bad signature", sig)

    monkeypatch.setattr(context.billing, "construct_event", reject)
    resp = client.post("/api/subscription/webhook", content=b"{}", headers={"Stripe-Signature": "nope"})
    assert resp.status_code == 400
