from django.contrib import admin

from .models import Product, ShopOrder


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("title", "price", "stock_quantity", "in_stock", "is_published")
    list_filter = ("is_published", "in_stock")
    search_fields = ("title",)


@admin.register(ShopOrder)
class ShopOrderAdmin(admin.ModelAdmin):
    list_display = ("order_reference", "product", "customer_name", "quantity", "status", "payment_status")
    list_filter = ("status", "payment_status", "payment_method")
    search_fields = ("order_reference", "customer_name", "customer_email")
    readonly_fields = ("order_reference", "payment")
