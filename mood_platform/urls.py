"""
URL configuration for mood_platform project.

The request/query API lives outside this service; only the Django admin is
exposed here for operators.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
