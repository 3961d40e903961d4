from datetime import datetime, timedelta, timezone
import stripe

def _body(raffle, **overrides):
    body = {"raffleId": raffle["id"], "ticketCount": 2, "email": "Buyer@Example.com", "variant": "M"}
    body.update(overrides)
    return body


def test_checkout_returns_stripe_url_and_metadata(client, store):
    raffle = store.add_raffle(ticket_price_cents=500, slug="vintage-jacket")
    res = client.post("/api/checkout", json=_body(raffle, instagramHandle="@alex"))
    assert res.status_code == 200
    assert res.json() == {"url": "https://checkout.stripe.test/pay"}

    session = store.checkout_sessions[0]
    assert session["metadata"] == {
        "raffleId": raffle["id"],
        "ticketCount": "2",
        "email": "buyer@example.com",
        "variant": "M",
        "raffleTitle": raffle["title"],
        "instagramHandle": "@alex",
    }
    line = session["line_items"][0]
    assert line["quantity"] == 2
    assert line["price_data"]["unit_amount"] == 500
    assert line["price_data"]["currency"] == "gbp"
    assert session["success_url"] == "https://shop.test/thank-you?session_id={CHECKOUT_SESSION_ID}"
    assert session["cancel_url"] == "https://shop.test/raffles/vintage-jacket"
    # aucune participation avant le webhook
    assert store.entries == {}


def test_checkout_validation_errors(client, store):
    raffle = store.add_raffle()
    cases = [
        ({"raffleId": ""}, "raffleId is required"),
        ({"ticketCount": 0}, "ticketCount must be an integer >= 1"),
        ({"ticketCount": "two"}, "ticketCount must be an integer >= 1"),
        ({"email": "nope"}, "Valid email is required"),
        ({"variant": "XXL"}, "Please select a valid size."),
    ]
    for overrides, message in cases:
        res = client.post("/api/checkout", json=_body(raffle, **overrides))
        assert res.status_code == 400, overrides
        assert res.json() == {"error": message}
    assert store.checkout_sessions == []


def test_checkout_unknown_or_inactive_raffle(client, store):
    res = client.post("/api/checkout", json=_body({"id": "missing"}))
    assert res.status_code == 404
    assert res.json() == {"error": "Raffle not found or inactive"}

    draft = store.add_raffle(status="draft")
    assert client.post("/api/checkout", json=_body(draft)).status_code == 404


def test_checkout_closed_raffle(client, store):
    past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
    raffle = store.add_raffle(closes_at=past)
    res = client.post("/api/checkout", json=_body(raffle))
    assert res.status_code == 400
    assert res.json() == {"error": "This draw is closed."}


def test_checkout_per_user_cap(client, store):
    raffle = store.add_raffle(max_entries_per_user=3)
    store.add_entry(raffle_id=raffle["id"], email="buyer@example.com", ticket_count=2)
    res = client.post("/api/checkout", json=_body(raffle, ticketCount=2))
    assert res.status_code == 400
    assert res.json() == {"error": "Maximum 3 entries allowed per user."}


def test_checkout_stripe_failure_is_500(client, store, monkeypatch):
    raffle = store.add_raffle()

    def down(**kwargs):
        raise stripe.APIConnectionError("Stripe unreachable")

    monkeypatch.setattr("storefront.payments.stripe_client.create_session", down)
    res = client.post("/api/checkout", json=_body(raffle))
    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}


def test_checkout_malformed_raffle_id_is_not_found(client, store):
    res = client.post("/api/checkout", json=_body({"id": "abc"}))
    assert res.status_code == 404
    assert res.json() == {"error": "Raffle not found or inactive"}


def test_checkout_rejects_non_ascii_ticket_count(client, store):
    raffle = store.add_raffle()
    res = client.post("/api/checkout", json=_body(raffle, ticketCount="²"))
    assert res.status_code == 400
    assert res.json() == {"error": "ticketCount must be an integer >= 1"}
