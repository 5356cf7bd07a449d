from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from payments.models import Payment
from payments.services.checkout import create_invoice_payment
from shop.models import Product, ShopOrder
from shop.services.orders import InsufficientStockError, cancel_order, create_order, reserve_stock

User = get_user_model()


@pytest.fixture
def staff_client(db):
    user = User.objects.create_user(
        username="eva@studioclay.test",
        email="eva@studioclay.test",
        password="examplepass",
        is_staff=True,
    )
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def product(db):
    return Product.objects.create(
        title="Skål i stengods",
        price=Decimal("450.00"),
        stock_quantity=2,
        is_published=True,
    )


def _stock(product):
    product.refresh_from_db()
    return product.stock_quantity


def test_in_stock_follows_quantity(product):
    assert product.in_stock is True

    product.stock_quantity = 0
    product.save(update_fields=["stock_quantity"])

    product.refresh_from_db()
    assert product.in_stock is False


def test_create_order_takes_stock(product):
    order = create_order(product=product, customer_name="Frank", customer_email="frank@example.com", quantity=2)

    assert order.order_reference.startswith("ORD-")
    assert order.total_price == Decimal("900.00")
    assert _stock(product) == 0
    assert product.in_stock is False


def test_create_order_refuses_oversell(product):
    with pytest.raises(InsufficientStockError):
        create_order(product=product, customer_name="Frank", customer_email="frank@example.com", quantity=3)

    assert ShopOrder.objects.count() == 0
    assert _stock(product) == 2


def test_unenforced_reserve_clamps_at_zero(product):
    reserve_stock(product.pk, 5, enforce_stock=False)

    assert _stock(product) == 0


def test_cancel_order_restocks_once(product):
    order = create_order(product=product, customer_name="Frank", customer_email="frank@example.com")

    cancel_order(order)
    cancel_order(order)

    assert _stock(product) == 2
    assert order.status == ShopOrder.CANCELLED


def test_cancel_oversold_order_returns_only_what_was_taken(product):
    order = create_order(
        product=product,
        customer_name="Frank",
        customer_email="frank@example.com",
        quantity=3,
        enforce_stock=False,
    )
    assert order.stock_reserved == 2
    assert _stock(product) == 0

    cancel_order(order)

    assert _stock(product) == 2
    order.refresh_from_db()
    assert order.stock_reserved == 0


def test_public_products_hide_unpublished(db, product):
    Product.objects.create(title="Prototyp", price=Decimal("10"), stock_quantity=1)

    response = APIClient().get("/api/public/products/")

    assert response.status_code == 200
    assert [row["title"] for row in response.json()] == ["Skål i stengods"]
    assert "stock_quantity" not in response.json()[0]


def test_deleting_ordered_product_unpublishes_it(staff_client, product):
    create_order(product=product, customer_name="Frank", customer_email="frank@example.com")

    response = staff_client.delete(f"/api/admin/products/{product.pk}/")

    assert response.status_code == 204
    product.refresh_from_db()
    assert product.is_published is False


def test_admin_cancelling_order_restocks(staff_client, product):
    order = create_order(product=product, customer_name="Frank", customer_email="frank@example.com")

    response = staff_client.patch(
        f"/api/admin/orders/{order.pk}/",
        {"status": ShopOrder.CANCELLED},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["status"] == ShopOrder.CANCELLED
    assert _stock(product) == 2


def test_admin_declining_invoice_order_releases_stock(staff_client, product):
    payment, order = create_invoice_payment(
        product_type=Payment.ART_PRODUCT,
        product_id=str(product.pk),
        user_info={"first_name": "Frank", "last_name": "Vän", "email": "frank@example.com"},
        invoice_details={"address": "Lillgatan 2", "postal_code": "113 45", "city": "Stockholm"},
    )
    assert _stock(product) == 1

    response = staff_client.patch(
        f"/api/admin/orders/{order.pk}/",
        {"payment_status": Payment.DECLINED},
        format="json",
    )

    assert response.status_code == 200, response.content
    body = response.json()
    assert body["status"] == ShopOrder.CANCELLED
    assert body["payment_status"] == Payment.DECLINED
    payment.refresh_from_db()
    assert payment.status == Payment.DECLINED
    assert _stock(product) == 2
