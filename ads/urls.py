"""
DeTransport Ads — URL routes.
"""

from django.urls import path

from . import views

app_name = "ads"

urlpatterns = [
    path("api/ads/", views.api_ads, name="api_ads"),
    path("telegram/webhook/", views.telegram_webhook, name="telegram_webhook"),
]
