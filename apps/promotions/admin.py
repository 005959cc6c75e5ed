from django.contrib import admin

from apps.promotions.models import FeaturedVehicle, Promotion


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active", "updated_at")
    list_filter = ("is_active",)


@admin.register(FeaturedVehicle)
class FeaturedVehicleAdmin(admin.ModelAdmin):
    list_display = ("vehicle_reg", "month", "featured_by", "used_at", "created_at")
    list_filter = ("month",)
    search_fields = ("vehicle_reg",)
