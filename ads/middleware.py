"""
DeTransport Ads — CORS for the public read API.
Only /api/ paths are affected. The Origin header is echoed back when it is in
ADS_CORS_ALLOWED_ORIGINS; other origins get no CORS headers. OPTIONS preflight is
answered here with 204 and never reaches the view.
"""

from django.conf import settings
from django.http import HttpResponse

API_PREFIX = "/api/"
ALLOWED_METHODS = "GET, OPTIONS"
ALLOWED_HEADERS = "Content-Type"
PREFLIGHT_MAX_AGE = "86400"


def _allowed_origins():
    return {o.rstrip("/") for o in getattr(settings, "ADS_CORS_ALLOWED_ORIGINS", []) if o}


class CorsAllowListMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith(API_PREFIX):
            return self.get_response(request)

        origin = request.headers.get("Origin", "")
        allowed = bool(origin) and origin.rstrip("/") in _allowed_origins()

        if request.method == "OPTIONS":
            response = HttpResponse(status=204)
            if allowed:
                response["Access-Control-Allow-Methods"] = ALLOWED_METHODS
                response["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
                response["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
        else:
            response = self.get_response(request)

        if allowed:
            response["Access-Control-Allow-Origin"] = origin
        response["Vary"] = "Origin"
        return response
