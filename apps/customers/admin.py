from django.contrib import admin

from apps.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "vehicle_reg", "visits_count", "last_visit")
    search_fields = ("name", "phone", "phone_normalized", "vehicle_reg")
    readonly_fields = ("phone_normalized", "visits_count", "last_visit", "created_at", "updated_at")
