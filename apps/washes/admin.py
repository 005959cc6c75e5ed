from django.contrib import admin

from apps.washes.models import Wash


@admin.register(Wash)
class WashAdmin(admin.ModelAdmin):
    list_display = ("receipt_no", "service", "car_type", "vehicle_reg", "unit_price", "is_free", "promo_code", "washed_at")
    list_filter = ("is_free", "promo_code", "service", "car_type")
    search_fields = ("receipt_no", "vehicle_reg", "customer__phone", "customer__name")
    readonly_fields = ("commission_amount", "profit_amount", "created_at", "updated_at")
    date_hierarchy = "washed_at"
