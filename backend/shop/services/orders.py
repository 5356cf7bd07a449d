from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from payments.services.references import generate_order_reference
from shop.models import Product, ShopOrder

logger = logging.getLogger(__name__)


class InsufficientStockError(Exception):
    def __init__(self, product: Product, requested: int):
        self.product = product
        self.requested = requested
        super().__init__(f"{product.title} has {product.stock_quantity} left, {requested} requested.")


def reserve_stock(product_id: int, quantity: int, *, enforce_stock: bool = True) -> int:
    """Take up to ``quantity`` items off the shelf and return how many were actually taken."""

    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product_id)
        if enforce_stock and product.stock_quantity < quantity:
            raise InsufficientStockError(product, quantity)
        if product.stock_quantity < quantity:
            logger.warning("Product %s oversold by %s", product.pk, quantity - product.stock_quantity)
        taken = min(product.stock_quantity, quantity)
        product.stock_quantity -= taken
        product.save(update_fields=["stock_quantity", "updated_at"])
    return taken


def release_stock(product_id: int, quantity: int) -> Product:
    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product_id)
        product.stock_quantity += quantity
        product.save(update_fields=["stock_quantity", "updated_at"])
    return product


def create_order(
    *,
    product: Product,
    customer_name: str,
    customer_email: str,
    customer_phone: str = "",
    quantity: int = 1,
    payment=None,
    status: str = ShopOrder.CONFIRMED,
    payment_method: str = "",
    payment_status: str = "CREATED",
    invoice_number: str = "",
    enforce_stock: bool = True,
) -> ShopOrder:
    """Take the items off the shelf and record the order."""

    with transaction.atomic():
        taken = reserve_stock(product.pk, quantity, enforce_stock=enforce_stock)
        unit_price = Decimal(product.price)
        order = ShopOrder.objects.create(
            product=product,
            payment=payment,
            order_reference=generate_order_reference(),
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            quantity=quantity,
            stock_reserved=taken,
            unit_price=unit_price,
            total_price=unit_price * quantity,
            currency=product.currency,
            status=status,
            payment_status=payment_status,
            payment_method=payment_method,
            invoice_number=invoice_number,
        )
    logger.info("Created order %s for product %s", order.order_reference, product.pk)
    return order


def cancel_order(order: ShopOrder) -> ShopOrder:
    if order.status == ShopOrder.CANCELLED:
        return order
    with transaction.atomic():
        if order.stock_reserved:
            release_stock(order.product_id, order.stock_reserved)
        order.status = ShopOrder.CANCELLED
        order.stock_reserved = 0
        order.save(update_fields=["status", "stock_reserved", "updated_at"])
    logger.info("Cancelled order %s", order.order_reference)
    return order
