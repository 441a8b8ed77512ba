"""
URL configuration for operator (admin) endpoints.
"""

from django.urls import path

from api.v1.admin import views

urlpatterns = [
    path("licenses/", views.LicenseCollectionView.as_view(), name="admin-licenses"),
    path(
        "licenses/<uuid:license_id>/",
        views.LicenseDetailView.as_view(),
        name="admin-license-detail",
    ),
    path(
        "licenses/<uuid:license_id>/suspend/",
        views.SuspendLicenseView.as_view(),
        name="admin-license-suspend",
    ),
    path(
        "licenses/<uuid:license_id>/resume/",
        views.ResumeLicenseView.as_view(),
        name="admin-license-resume",
    ),
    path(
        "licenses/<uuid:license_id>/revoke/",
        views.RevokeLicenseView.as_view(),
        name="admin-license-revoke",
    ),
    path(
        "licenses/<uuid:license_id>/reactivate/",
        views.ReactivateLicenseView.as_view(),
        name="admin-license-reactivate",
    ),
    path(
        "licenses/<uuid:license_id>/renew/",
        views.RenewLicenseView.as_view(),
        name="admin-license-renew",
    ),
    path(
        "licenses/<uuid:license_id>/regenerate-key/",
        views.RegenerateLicenseKeyView.as_view(),
        name="admin-license-regenerate-key",
    ),
    path(
        "licenses/<uuid:license_id>/transfer/",
        views.TransferLicenseView.as_view(),
        name="admin-license-transfer",
    ),
    path(
        "validation-logs/",
        views.ValidationLogListView.as_view(),
        name="admin-validation-logs",
    ),
    path(
        "validation-logs/statistics/",
        views.ValidationLogStatisticsView.as_view(),
        name="admin-validation-log-statistics",
    ),
]
