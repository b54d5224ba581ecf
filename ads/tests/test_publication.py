"""
DeTransport Ads — Tests for the publication query and the public read API.
"""

from datetime import date
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.urls import reverse

from ads.exceptions import StorageFailure
from ads.models import AdSubmission
from ads.services.publication import active_submissions, serialize_submission
from ads.services.repository import SubmissionRepository
from ads.tests.test_repository import submission_fields

ORIGIN = "https://detransport.com.ua"


class PublicationQueryTests(TestCase):

    def setUp(self):
        self.repo = SubmissionRepository()

    def test_window_boundaries(self):
        pk = self.repo.create(100, media_url="https://files.example/b.jpg", **submission_fields(tariff_days=7))
        self.repo.approve(pk, today=date(2024, 1, 10))
        visible = active_submissions(today=date(2024, 1, 17))
        self.assertEqual(visible, [{
            "id": pk,
            "title": "Sale",
            "description": "20% off",
            "mediaUrl": "https://files.example/b.jpg",
            "linkUrl": "https://shop.example/x",
            "contactInfo": "@shop",
            "startDate": "2024-01-10",
            "endDate": "2024-01-17",
        }])
        self.assertEqual(active_submissions(today=date(2024, 1, 18)), [])

    def test_pending_and_disabled_hidden(self):
        pending = self.repo.create(100, **submission_fields())
        disabled = self.repo.create(100, **submission_fields())
        self.repo.approve(disabled, today=date(2024, 1, 10))
        self.repo.disable(disabled)
        ids = [a["id"] for a in active_submissions(today=date(2024, 1, 11))]
        self.assertNotIn(pending, ids)
        self.assertNotIn(disabled, ids)

    def test_null_dates_omitted(self):
        pk = self.repo.create(100, **submission_fields())
        AdSubmission.objects.filter(pk=pk).update(moderation_status=AdSubmission.ModerationStatus.ACTIVE)
        data = serialize_submission(AdSubmission.objects.get(pk=pk))
        self.assertNotIn("startDate", data)
        self.assertNotIn("endDate", data)
        self.assertIsNone(data["mediaUrl"])

    def test_newest_first_capped(self):
        today = date(2024, 1, 10)
        ids = []
        for i in range(105):
            pk = self.repo.create(100, **submission_fields(title=f"Ad {i}"))
            ids.append(pk)
        AdSubmission.objects.update(
            moderation_status=AdSubmission.ModerationStatus.ACTIVE, start_date=today, end_date=today,
        )
        result = active_submissions(today=today)
        self.assertEqual(len(result), 100)
        self.assertEqual(result[0]["id"], ids[-1])


class ApiAdsViewTests(TestCase):

    def test_returns_json_array(self):
        pk = SubmissionRepository().create(100, **submission_fields())
        AdSubmission.objects.filter(pk=pk).update(moderation_status=AdSubmission.ModerationStatus.ACTIVE)
        response = self.client.get(reverse("ads:api_ads"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([a["id"] for a in response.json()], [pk])

    def test_storage_failure_is_500(self):
        with patch("ads.views.active_submissions", side_effect=StorageFailure("db down")):
            response = self.client.get(reverse("ads:api_ads"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Server error"})

    def test_post_not_allowed(self):
        response = self.client.post(reverse("ads:api_ads"))
        self.assertEqual(response.status_code, 405)

    @override_settings(ADS_CORS_ALLOWED_ORIGINS=[ORIGIN])
    def test_cors_allowed_origin_echoed(self):
        response = self.client.get(reverse("ads:api_ads"), HTTP_ORIGIN=ORIGIN)
        self.assertEqual(response["Access-Control-Allow-Origin"], ORIGIN)

    @override_settings(ADS_CORS_ALLOWED_ORIGINS=[ORIGIN])
    def test_cors_other_origin_not_echoed(self):
        response = self.client.get(reverse("ads:api_ads"), HTTP_ORIGIN="https://evil.example")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.has_header("Access-Control-Allow-Origin"))

    @override_settings(ADS_CORS_ALLOWED_ORIGINS=[ORIGIN])
    def test_preflight(self):
        response = self.client.options(reverse("ads:api_ads"), HTTP_ORIGIN=ORIGIN)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response["Access-Control-Allow-Origin"], ORIGIN)
        self.assertIn("GET", response["Access-Control-Allow-Methods"])
