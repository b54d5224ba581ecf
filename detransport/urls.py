"""
DeTransport Ads — URL configuration.
Admin for staff; everything else lives in ads.urls (read API and Telegram webhook).
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('ads.urls')),
]
