from django.urls import path

from .views import (
    ActivationView,
    BackupView,
    CredentialView,
    CustomerCollectionView,
    DailyScansView,
    PointsView,
    ScanView,
)

app_name = "punchcard"

urlpatterns = [
    path("<str:tenant>/activation/", ActivationView.as_view(), name="activation"),
    path("<str:tenant>/customers/", CustomerCollectionView.as_view(), name="customers"),
    path(
        "<str:tenant>/customers/<str:customer_id>/credential/",
        CredentialView.as_view(),
        name="credential",
    ),
    path(
        "<str:tenant>/customers/<str:customer_id>/points/",
        PointsView.as_view(),
        name="points",
    ),
    path("<str:tenant>/scan/", ScanView.as_view(), name="scan"),
    path("<str:tenant>/scans/", DailyScansView.as_view(), name="daily-scans"),
    path("<str:tenant>/backup/", BackupView.as_view(), name="backup"),
]
