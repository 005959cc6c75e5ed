from django.contrib import admin

from apps.catalog.models import CarType, Service, ServicePrice


class ServicePriceInline(admin.TabularInline):
    model = ServicePrice
    extra = 0


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "base_price", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [ServicePriceInline]


@admin.register(CarType)
class CarTypeAdmin(admin.ModelAdmin):
    list_display = ("label", "sort_order", "updated_at")
    search_fields = ("label",)
    ordering = ("sort_order", "label")


@admin.register(ServicePrice)
class ServicePriceAdmin(admin.ModelAdmin):
    list_display = ("service", "car_type", "price", "updated_at")
    list_filter = ("service", "car_type")
