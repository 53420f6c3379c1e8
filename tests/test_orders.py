"""Checkout submission, order history, cancel/reorder and admin status changes."""

import re
import uuid

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import auth_headers
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem
from storefront.models.product import Inventory, Product
from storefront.repositories.cart_repo import CartRepository
from storefront.services.order_service import generate_order_number

API = "/api/v1/orders"

CHECKOUT = dict(
    first_name="سارا",
    last_name="احمدی",
    phone="09121234567",
    address="تهران، خیابان آزادی، پلاک ۱۰",
    city="تهران",
    state="تهران",
    postal_code="1234567890",
    shipping_method="standard",
    payment_method="online",
)


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(
        "storefront.services.order_service.send_email",
        lambda **kwargs: sent.append(kwargs),
    )
    return sent


def _add(client, headers, product, quantity):
    res = client.post(
        "/api/v1/cart/items",
        json={"product_id": str(product.id), "quantity": quantity},
        headers=headers,
    )
    assert res.status_code == 200


def _inventory(session, product) -> Inventory:
    return session.exec(select(Inventory).where(Inventory.product_id == product.id)).one()


def _place_order(client, catalog, user, quantity=2) -> dict:
    headers = auth_headers(user)
    _add(client, headers, catalog.pen, quantity)
    res = client.post(f"{API}/checkout", json=CHECKOUT, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def test_order_number_format():
    assert re.fullmatch(r"MT\d{6}[A-Z0-9]{4}", generate_order_number())


def test_checkout_requires_sign_in(client, catalog):
    res = client.post(f"{API}/checkout", json=CHECKOUT)
    assert res.status_code == 401


def test_checkout_with_empty_cart(client, catalog, retail_user, outbox):
    res = client.post(f"{API}/checkout", json=CHECKOUT, headers=auth_headers(retail_user))
    assert res.status_code == 400
    assert res.json()["detail"] == "سبد خرید خالی است"
    assert outbox == []


def test_checkout_creates_order(client, session, catalog, retail_user, outbox):
    order = _place_order(client, catalog, retail_user)

    assert re.fullmatch(r"MT\d{6}[A-Z0-9]{4}", order["order_number"])
    assert order["status"] == "pending"
    assert order["status_label"] == "در انتظار تایید"
    assert order["order_type"] == "b2c"
    assert order["customer_name"] == "سارا احمدی"
    assert order["customer_email"] == "sara@example.com"
    assert order["subtotal"] == 20000
    assert order["shipping_cost"] == 25000
    assert order["total_amount"] == 45000

    (item,) = order["items"]
    assert item["product_sku"] == "PEN-001"
    assert item["product_name"] == "خودکار آبی"
    assert item["quantity"] == 2
    assert item["total_price"] == 20000

    # the cart is emptied and the stock reserved in the same transaction
    rows = session.exec(select(CartItem).where(CartItem.user_id == retail_user.id)).all()
    assert rows == []
    assert _inventory(session, catalog.pen).reserved_quantity == 2

    (mail,) = outbox
    assert mail["to_email"] == "sara@example.com"
    assert order["order_number"] in mail["subject"]


def test_wholesale_checkout_ships_free(client, catalog, wholesale_user, outbox):
    headers = auth_headers(wholesale_user)
    _add(client, headers, catalog.pen, 10)
    res = client.post(
        f"{API}/checkout",
        json={**CHECKOUT, "payment_method": "transfer"},
        headers=headers,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["order_type"] == "b2b"
    assert body["subtotal"] == 80000
    assert body["shipping_cost"] == 0
    assert body["items"][0]["price_type"] == "wholesale"


def test_mail_failure_does_not_block_order(client, session, catalog, retail_user, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("SMTP is not configured")

    monkeypatch.setattr("storefront.services.order_service.send_email", broken)
    _place_order(client, catalog, retail_user)
    assert len(session.exec(select(Order)).all()) == 1


def test_checkout_field_errors(client, catalog, retail_user, outbox):
    headers = auth_headers(retail_user)
    _add(client, headers, catalog.pen, 1)
    res = client.post(
        f"{API}/checkout",
        json={**CHECKOUT, "phone": "123", "postal_code": ""},
        headers=headers,
    )
    assert res.status_code == 422
    errors = res.json()["detail"]["errors"]
    assert errors == {"phone": "شماره تلفن معتبر نیست", "postal_code": "کد پستی الزامی است"}


def test_retail_customer_cannot_pay_by_transfer(client, catalog, retail_user, outbox):
    headers = auth_headers(retail_user)
    _add(client, headers, catalog.pen, 1)
    res = client.post(
        f"{API}/checkout", json={**CHECKOUT, "payment_method": "transfer"}, headers=headers
    )
    assert res.status_code == 422
    assert "payment_method" in res.json()["detail"]["errors"]


def test_out_of_stock_line_blocks_checkout(client, session, catalog, retail_user, outbox):
    headers = auth_headers(retail_user)
    _add(client, headers, catalog.pencil, 1)
    res = client.post(f"{API}/checkout", json=CHECKOUT, headers=headers)
    assert res.status_code == 400
    (problem,) = res.json()["detail"]["items"]
    assert problem["product_id"] == str(catalog.pencil.id)

    # nothing written, cart untouched
    assert session.exec(select(Order)).all() == []
    assert len(session.exec(select(CartItem)).all()) == 1


def test_failed_checkout_rolls_back_everything(
    client, session, catalog, retail_user, monkeypatch, outbox
):
    def failing_clear(self, session, user_id):
        raise OperationalError("DELETE FROM cart_items", {}, Exception("connection lost"))

    monkeypatch.setattr(CartRepository, "stage_clear", failing_clear)
    headers = auth_headers(retail_user)
    _add(client, headers, catalog.pen, 2)

    res = client.post(f"{API}/checkout", json=CHECKOUT, headers=headers)
    assert res.status_code == 500
    assert res.json()["detail"] == "خطا در ایجاد سفارش"

    assert session.exec(select(Order)).all() == []
    assert session.exec(select(OrderItem)).all() == []
    assert len(session.exec(select(CartItem)).all()) == 1
    assert _inventory(session, catalog.pen).reserved_quantity == 0
    assert outbox == []


def test_history_search_and_stats(client, catalog, retail_user, outbox):
    first = _place_order(client, catalog, retail_user, quantity=1)
    _place_order(client, catalog, retail_user, quantity=3)
    headers = auth_headers(retail_user)

    page = client.get(f"{API}/me", headers=headers).json()
    assert page["total"] == 2
    assert page["total_pages"] == 1
    assert "items" not in page["items"][0]

    found = client.get(
        f"{API}/me", params={"search": first["order_number"].lower()}, headers=headers
    ).json()
    assert [o["order_number"] for o in found["items"]] == [first["order_number"]]

    wildcard = client.get(f"{API}/me", params={"search": "%"}, headers=headers).json()
    assert wildcard["total"] == 0

    stats = client.get(f"{API}/me/stats", headers=headers).json()
    assert stats["total"] == 2
    assert stats["pending"] == 2
    assert stats["cancelled"] == 0
    assert stats["total_amount"] == (10000 + 25000) + (30000 + 25000)
    assert stats["average_amount"] == stats["total_amount"] / 2


def test_status_filter(client, catalog, retail_user, outbox):
    order = _place_order(client, catalog, retail_user)
    headers = auth_headers(retail_user)
    client.post(f"{API}/me/{order['id']}/cancel", headers=headers)

    pending = client.get(f"{API}/me", params={"status": "pending"}, headers=headers).json()
    assert pending["total"] == 0
    cancelled = client.get(f"{API}/me", params={"status": "cancelled"}, headers=headers).json()
    assert cancelled["total"] == 1


def test_orders_are_private(client, catalog, retail_user, wholesale_user, outbox):
    order = _place_order(client, catalog, retail_user)

    mine = client.get(f"{API}/me/{order['id']}", headers=auth_headers(retail_user))
    assert mine.status_code == 200
    assert len(mine.json()["items"]) == 1

    theirs = client.get(f"{API}/me/{order['id']}", headers=auth_headers(wholesale_user))
    assert theirs.status_code == 404
    assert theirs.json()["detail"] == "سفارش یافت نشد"

    missing = client.get(f"{API}/me/{uuid.uuid4()}", headers=auth_headers(retail_user))
    assert missing.status_code == 404


def test_cancel_releases_stock(client, session, catalog, retail_user, outbox):
    order = _place_order(client, catalog, retail_user)
    headers = auth_headers(retail_user)

    res = client.post(f"{API}/me/{order['id']}/cancel", headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
    assert _inventory(session, catalog.pen).reserved_quantity == 0

    again = client.post(f"{API}/me/{order['id']}/cancel", headers=headers)
    assert again.status_code == 400


def test_shipped_order_cannot_be_cancelled(client, session, catalog, retail_user, outbox):
    order = _place_order(client, catalog, retail_user)
    row = session.get(Order, uuid.UUID(order["id"]))
    row.status = "shipped"
    session.add(row)
    session.commit()

    res = client.post(f"{API}/me/{order['id']}/cancel", headers=auth_headers(retail_user))
    assert res.status_code == 400
    assert _inventory(session, catalog.pen).reserved_quantity == 2


def test_reorder_refills_cart(client, catalog, retail_user, outbox):
    order = _place_order(client, catalog, retail_user, quantity=4)
    headers = auth_headers(retail_user)

    res = client.post(f"{API}/me/{order['id']}/reorder", headers=headers)
    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "added": 1,
        "failed": 0,
        "message": "تمام آیتم‌ها به سبد خرید اضافه شدند",
    }

    cart = client.get("/api/v1/cart", headers=headers).json()
    assert [(ln["product_id"], ln["quantity"]) for ln in cart["items"]] == [
        (str(catalog.pen.id), 4)
    ]


def test_reorder_reports_unavailable_items(client, session, catalog, retail_user, outbox):
    order = _place_order(client, catalog, retail_user)
    pen = session.get(Product, catalog.pen.id)
    pen.is_active = False
    session.add(pen)
    session.commit()

    body = client.post(
        f"{API}/me/{order['id']}/reorder", headers=auth_headers(retail_user)
    ).json()
    assert body["success"] is False
    assert body["failed"] == 1
    assert body["message"] == "1 آیتم اضافه نشد"


def test_status_update_is_admin_only(client, catalog, retail_user, admin_user, outbox):
    order = _place_order(client, catalog, retail_user)
    url = f"{API}/{order['id']}/status"

    denied = client.patch(url, json={"status": "confirmed"}, headers=auth_headers(retail_user))
    assert denied.status_code == 403

    admin = auth_headers(admin_user)
    ok = client.patch(url, json={"status": "confirmed"}, headers=admin)
    assert ok.status_code == 200
    assert ok.json()["status_label"] == "تایید شده"

    same = client.patch(url, json={"status": "confirmed"}, headers=admin)
    assert same.status_code == 200

    skip = client.patch(url, json={"status": "delivered"}, headers=admin)
    assert skip.status_code == 400

    unknown = client.patch(url, json={"status": "lost"}, headers=admin)
    assert unknown.status_code == 422


def test_admin_cancel_releases_stock(client, session, catalog, retail_user, admin_user, outbox):
    order = _place_order(client, catalog, retail_user)
    res = client.patch(
        f"{API}/{order['id']}/status",
        json={"status": "cancelled"},
        headers=auth_headers(admin_user),
    )
    assert res.status_code == 200
    assert _inventory(session, catalog.pen).reserved_quantity == 0

    reopen = client.patch(
        f"{API}/{order['id']}/status",
        json={"status": "pending"},
        headers=auth_headers(admin_user),
    )
    assert reopen.status_code == 400
