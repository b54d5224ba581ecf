"""
DeTransport Ads — publication query for the public read API.
"""

from datetime import date

from ads.models import AdSubmission
from ads.services.repository import SubmissionRepository


def serialize_submission(submission: AdSubmission) -> dict:
    """Public JSON shape; dates are ISO strings and omitted when unset."""
    data = {
        "id": submission.pk,
        "title": submission.title,
        "description": submission.description,
        "mediaUrl": submission.media_url,
        "linkUrl": submission.link_url,
        "contactInfo": submission.contact_info,
    }
    if submission.start_date:
        data["startDate"] = submission.start_date.isoformat()
    if submission.end_date:
        data["endDate"] = submission.end_date.isoformat()
    return data


def active_submissions(today: date | None = None, repository: SubmissionRepository | None = None) -> list[dict]:
    """Currently visible ads, newest first, capped at the publication page size."""
    repository = repository or SubmissionRepository()
    return [serialize_submission(s) for s in repository.list_active(today=today)]
