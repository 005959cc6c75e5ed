from django.urls import path

from apps.configuration.views import AppSettingsView

urlpatterns = [
    path("settings/", AppSettingsView.as_view(), name="app-settings"),
]
