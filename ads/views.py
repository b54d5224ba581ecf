"""
DeTransport Ads — HTTP endpoints: public read API and Telegram webhook.
No business logic here; views delegate to services.
"""

import json
import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from ads.exceptions import StorageFailure
from ads.services.publication import active_submissions
from ads.services.telegram_update_handler import process_update

logger = logging.getLogger(__name__)


@require_http_methods(["GET"])
def api_ads(request):
    """
    GET /api/ads/
    Currently active ads, newest first (max 100).
    Format: [{ "id", "title", "description", "mediaUrl", "linkUrl", "contactInfo", "startDate"?, "endDate"? }, ...]
    """
    try:
        results = active_submissions()
    except StorageFailure as e:
        logger.exception("api_ads: %s", e)
        return JsonResponse({"error": "Server error"}, status=500)
    return JsonResponse(results, safe=False)


@csrf_exempt
@require_http_methods(["POST"])
def telegram_webhook(request):
    """
    Telegram webhook: verify secret, parse update, route to conversation engine, send reply.
    Always returns 200 after handling so Telegram does not retry indefinitely.
    """
    webhook_secret = getattr(settings, "TELEGRAM_WEBHOOK_SECRET", "")
    if webhook_secret:
        secret = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "").strip()
        if secret != webhook_secret:
            logger.warning("Webhook secret mismatch")
            return HttpResponse(status=403)

    try:
        body = json.loads(request.body)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
        logger.warning("Webhook invalid JSON: %s", e)
        return HttpResponse(status=400)
    if not isinstance(body, dict):
        logger.warning("Webhook payload is not an object")
        return HttpResponse(status=400)

    logger.info("Webhook update received update_id=%s", body.get("update_id", "?"))
    try:
        process_update(body)
    except Exception as e:
        logger.exception("Webhook processing failed: %s", e)
    return HttpResponse(status=200)
