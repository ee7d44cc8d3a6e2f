# reporting/api/urls.py

from django.urls import path

from reporting.api.views import ReportView

urlpatterns = [
    path("", ReportView.as_view(), name="report"),
]
