from django.contrib import admin

from apps.staff.models import Staff


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "role_label", "is_active", "hire_date")
    list_filter = ("is_active", "role_label")
    search_fields = ("name", "phone", "email")
