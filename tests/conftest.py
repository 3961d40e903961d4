import copy
import hashlib
import hmac
import json
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

import bcrypt
import pytest

# Environnement de test fixé AVANT l'import de l'application (config lue à l'import)
ADMIN_PASSWORD = "Admin_Test_12$"
WEBHOOK_SECRET = "whsec_test_secret"
os.environ.update({
    "SUPABASE_URL": "https://example.supabase.co",
    "SUPABASE_SERVICE_KEY": "service-key",
    "STRIPE_SECRET_KEY": "sk_test_123",
    "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
    "BASE_URL": "https://shop.test",
    "FREE_SHIPPING_THRESHOLD_CENTS": "5000",
    "NEXT_DAY_SHIPPING_CENTS": "599",
    "STANDARD_SHIPPING_CENTS": "0",
    "ADMIN_USER": "admin",
    "ADMIN_PASSWORD_HASH": bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8"),
    "RESEND_API_KEY": "",
    "DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS": "1",
})
os.environ.pop("LOCAL_RATE_LIMIT_FALLBACK", None)

from fastapi.testclient import TestClient

from storefront.asgi import app as fastapi_app
from storefront.utils.errors import DuplicateKeyError

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class FakeStore:
    """
    Datastore en mémoire qui remplace les fonctions des repositories.
    Respecte les mêmes contraintes que le schéma SQL: unicité (order_number, slug,
    code, stripe_session_id, email de la liste d'attente) et mises à jour conditionnelles.
    """

    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.raffles: Dict[str, Dict[str, Any]] = {}
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.discounts: Dict[str, Dict[str, Any]] = {}
        self.waitlist: List[str] = []
        self.emails: List[Dict[str, Any]] = []
        self.checkout_sessions: List[Dict[str, Any]] = []

    # --- seed helpers ---
    def add_product(self, **fields) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "title": "Archive Tee",
            "slug": f"archive-tee-{len(self.products) + 1}",
            "price_cents": 2000,
            "stock_quantity": 10,
            "is_active": True,
            "variant_options": [],
            "sort_priority": 0,
        }
        row.update(fields)
        self.products[row["id"]] = row
        return row

    def add_raffle(self, **fields) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "title": "Vintage Jacket Draw",
            "slug": f"vintage-jacket-{len(self.raffles) + 1}",
            "ticket_price_cents": 500,
            "max_entries_per_user": 10,
            "max_tickets": None,
            "closes_at": None,
            "status": "active",
            "variant_options": ["S", "M", "L", "XL"],
            "winner_email": None,
            "winner_name": None,
        }
        row.update(fields)
        self.raffles[row["id"]] = row
        return row

    def add_discount(self, **fields) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "code": "SAVE10",
            "discount_type": "percentage",
            "discount_value": 10,
            "min_order_cents": 0,
            "max_uses": None,
            "current_uses": 0,
            "is_active": True,
            "expires_at": None,
        }
        row.update(fields)
        self.discounts[row["code"]] = row
        return row

    def add_order(self, **fields) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "order_number": f"ORD-SEED{len(self.orders) + 1:02d}",
            "status": "pending_payment",
            "discount_code": None,
            "email": "buyer@example.com",
        }
        row.update(fields)
        self.orders[row["id"]] = row
        return row

    def add_entry(self, **fields) -> Dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "stripe_session_id": f"cs_seed_{len(self.entries)}", "variant": None}
        row.update(fields)
        self.entries[row["id"]] = row
        return row

    def entries_for(self, raffle_id: str) -> List[Dict[str, Any]]:
        return [e for e in self.entries.values() if e["raffle_id"] == raffle_id]

    # --- products ---
    def get_product(self, product_id):
        row = self.products.get(product_id)
        return copy.deepcopy(row) if row else None

    def product_slug_exists(self, slug):
        return any(p["slug"] == slug for p in self.products.values())

    def decrement_stock(self, product_id, quantity):
        row = self.products.get(product_id)
        if not row or quantity < 1 or row["stock_quantity"] < quantity:
            return None
        row["stock_quantity"] -= quantity
        return row["stock_quantity"]

    def insert_product(self, row):
        if self.product_slug_exists(row["slug"]):
            raise DuplicateKeyError("products", row["slug"])
        return copy.deepcopy(self.add_product(**row))

    def set_sort_priority(self, product_id, priority):
        row = self.products.get(product_id)
        if not row:
            return False
        row["sort_priority"] = priority
        return True

    # --- orders ---
    def order_number_exists(self, order_number):
        return any(o["order_number"] == order_number for o in self.orders.values())

    def insert_order(self, row):
        if self.order_number_exists(row["order_number"]):
            raise DuplicateKeyError("orders", row["order_number"])
        stored = {"id": str(uuid.uuid4()), **row}
        self.orders[stored["id"]] = stored
        return copy.deepcopy(stored)

    def get_order(self, order_id):
        row = self.orders.get(order_id)
        return copy.deepcopy(row) if row else None

    def get_order_by_number(self, order_number):
        for row in self.orders.values():
            if row["order_number"] == order_number:
                return copy.deepcopy(row)
        return None

    def update_status(self, to_status, allowed_from, *, order_id=None, order_number=None):
        for row in self.orders.values():
            key_ok = row["id"] == order_id if order_id is not None else row["order_number"] == order_number
            if key_ok and row["status"] in tuple(allowed_from):
                row["status"] = to_status
                return copy.deepcopy(row)
        return None

    # --- discounts ---
    def get_discount_code(self, code):
        row = self.discounts.get(code)
        return copy.deepcopy(row) if row else None

    def redeem_discount_code(self, code):
        row = self.discounts.get(code.upper())
        if not row or not row["is_active"]:
            return None
        expires = _parse_ts(row.get("expires_at"))
        if expires is not None and expires <= datetime.now(timezone.utc):
            return None
        if row["max_uses"] is not None and row["current_uses"] >= row["max_uses"]:
            return None
        row["current_uses"] += 1
        return row["current_uses"]

    # --- raffles / entries ---
    def get_raffle(self, raffle_id):
        row = self.raffles.get(raffle_id)
        return copy.deepcopy(row) if row else None

    def raffle_slug_exists(self, slug):
        return any(r["slug"] == slug for r in self.raffles.values())

    def insert_raffle(self, row):
        if self.raffle_slug_exists(row["slug"]):
            raise DuplicateKeyError("raffles", row["slug"])
        return copy.deepcopy(self.add_raffle(**row))

    def update_raffle(self, raffle_id, fields):
        row = self.raffles.get(raffle_id)
        if not row:
            return None
        row.update(fields)
        return copy.deepcopy(row)

    def count_tickets(self, raffle_id, email=None):
        return sum(
            e["ticket_count"] for e in self.entries.values()
            if e["raffle_id"] == raffle_id and (email is None or e["email"] == email)
        )

    def insert_entry(self, row):
        if any(e["stripe_session_id"] == row["stripe_session_id"] for e in self.entries.values()):
            raise DuplicateKeyError("entries", row["stripe_session_id"])
        return copy.deepcopy(self.add_entry(**row))

    def delete_entry(self, entry_id):
        return self.entries.pop(entry_id, None) is not None

    # --- waitlist ---
    def insert_waitlist_email(self, email):
        if email in self.waitlist:
            return None
        self.waitlist.append(email)
        return {"email": email}

    # --- collaborateurs externes ---
    def create_session(self, **kwargs):
        session = {"id": f"cs_test_{len(self.checkout_sessions) + 1}", "url": "https://checkout.stripe.test/pay"}
        self.checkout_sessions.append({**kwargs, **session})
        return session

    def send_email(self, to, subject, body_html):
        self.emails.append({"to": to, "subject": subject, "html": body_html})
        return True

    def install(self, monkeypatch) -> None:
        patches = {
            "storefront.products.repository.get_product": self.get_product,
            "storefront.products.repository.slug_exists": self.product_slug_exists,
            "storefront.products.repository.decrement_stock": self.decrement_stock,
            "storefront.products.repository.insert_product": self.insert_product,
            "storefront.products.repository.set_sort_priority": self.set_sort_priority,
            "storefront.orders.repository.order_number_exists": self.order_number_exists,
            "storefront.orders.repository.insert_order": self.insert_order,
            "storefront.orders.repository.get_order": self.get_order,
            "storefront.orders.repository.get_order_by_number": self.get_order_by_number,
            "storefront.orders.repository.update_status": self.update_status,
            "storefront.discounts.repository.get_discount_code": self.get_discount_code,
            "storefront.discounts.repository.redeem_discount_code": self.redeem_discount_code,
            "storefront.raffles.repository.get_raffle": self.get_raffle,
            "storefront.raffles.repository.slug_exists": self.raffle_slug_exists,
            "storefront.raffles.repository.insert_raffle": self.insert_raffle,
            "storefront.raffles.repository.update_raffle": self.update_raffle,
            "storefront.raffles.repository.count_tickets": self.count_tickets,
            "storefront.raffles.repository.insert_entry": self.insert_entry,
            "storefront.raffles.repository.delete_entry": self.delete_entry,
            "storefront.waitlist.repository.insert_waitlist_email": self.insert_waitlist_email,
            "storefront.payments.stripe_client.create_session": self.create_session,
            "storefront.notifications.email.send_email": self.send_email,
        }
        for target, fake in patches.items():
            monkeypatch.setattr(target, fake)


# Datastore en mémoire pour tous les tests: aucun accès réseau à Supabase/Stripe/Resend
@pytest.fixture(autouse=True)
def store(monkeypatch) -> FakeStore:
    fake = FakeStore()
    fake.install(monkeypatch)
    return fake

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def admin_auth():
    return ("admin", ADMIN_PASSWORD)


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature réel: t=<ts>,v1=<hmac_sha256(secret, "<ts>.<payload>")>."""
    ts = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def make_checkout_event(
    metadata: Dict[str, Any],
    *,
    event_id: str = "evt_test_1",
    session_id: str = "cs_test_1",
    event_type: str = "checkout.session.completed",
) -> Dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_intent": "pi_test_1",
                "customer": "cus_test_1",
                "customer_email": metadata.get("email"),
                "metadata": metadata,
                "shipping_details": {
                    "name": "Alex Buyer",
                    "address": {"line1": "1 High Street", "city": "London", "postal_code": "SW1A 1AA", "country": "GB"},
                },
            }
        },
    }


@pytest.fixture()
def post_webhook(client):
    """Poste un événement signé sur le webhook et renvoie la réponse."""
    def _post(event: Dict[str, Any], secret: str = WEBHOOK_SECRET, signature: Optional[str] = None):
        payload = json.dumps(event)
        headers = {"Content-Type": "application/json"}
        headers["Stripe-Signature"] = signature if signature is not None else sign_payload(payload, secret)
        return client.post("/api/stripe/webhook", content=payload, headers=headers)
    return _post
