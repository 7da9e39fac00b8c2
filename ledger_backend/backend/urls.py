# backend/urls.py
"""
PROJECT URLS

The ledger core is consumed in-process by the request layer; this project
only exposes:
- Django admin (read-only journal browsing)
- /health/ (DB connectivity probe)

ADMIN_PATH can be moved via settings to narrow the attack surface.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.http import JsonResponse
from django.urls import path


def health_check(request):
    """
    Minimal operational endpoint:
    - Confirms app is responding
    - Confirms DB connection + simple query works
    """
    try:
        conn = connections["default"]
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
        return JsonResponse({"status": "ok", "db": "ok"})
    except OperationalError as e:
        return JsonResponse(
            {"status": "degraded", "db": "down", "error": str(e)}, status=503
        )


ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"


urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("health/", health_check, name="health-check"),
]
