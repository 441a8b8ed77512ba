"""
URL configuration for client license endpoints.
"""

from django.urls import path

from api.v1.license import views

urlpatterns = [
    path("validate/", views.ValidateLicenseView.as_view(), name="license-validate"),
    path("activate/", views.ActivateLicenseView.as_view(), name="license-activate"),
    path("deactivate/", views.DeactivateLicenseView.as_view(), name="license-deactivate"),
    path("heartbeat/", views.HeartbeatView.as_view(), name="license-heartbeat"),
    path("status/", views.LicenseStatusView.as_view(), name="license-status"),
]
