# backend/urls.py
"""
PROJECT URLS

Only the Django admin is routed. The accounting engine is invoked in-process
by business workflows and management commands, not over HTTP.

Security hardening:
- Admin path is configurable via settings.ADMIN_PATH
  to reduce bot scanning/noise and narrow attack surface.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.urls import path

# ------------------ ADMIN PATH (HARDENED) ------------------
# Default is the legacy /admin/ to avoid breaking local setups.
# Keep the trailing slash.
ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
]
