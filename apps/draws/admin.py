from django.contrib import admin

from apps.draws.models import DailyFreeCandidate, DailyFreeWinner


@admin.register(DailyFreeWinner)
class DailyFreeWinnerAdmin(admin.ModelAdmin):
    list_display = ("draw_date", "status", "customer_name", "vehicle_reg", "approved_by", "used_at")
    list_filter = ("status",)
    search_fields = ("customer_name", "customer_phone", "vehicle_reg")
    date_hierarchy = "draw_date"
    readonly_fields = ("approved_at", "revoked_at", "created_at")


@admin.register(DailyFreeCandidate)
class DailyFreeCandidateAdmin(admin.ModelAdmin):
    list_display = ("draw_date", "customer_name", "vehicle_reg", "washes_in_month", "last_wash")
    search_fields = ("customer_name", "customer_phone", "vehicle_reg")
    date_hierarchy = "draw_date"
