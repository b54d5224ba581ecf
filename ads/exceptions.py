"""
DeTransport Ads — domain errors.
Validation and command-argument errors carry an i18n key so handlers can reply
without exposing internals.
"""


class AdsError(Exception):
    """Base class for ads domain errors."""
    pass


class ValidationFailure(AdsError):
    """User input failed a length/URL/shape check. Always recovered by re-prompting."""

    def __init__(self, message_key: str, **params):
        super().__init__(message_key)
        self.message_key = message_key
        self.params = params


class StorageFailure(AdsError):
    """A repository operation could not complete."""
    pass


class MediaUnavailable(AdsError):
    """The file host could not resolve a media reference to a URL."""
    pass


class AccessDenied(AdsError):
    """Caller is not allowed to run an admin operation."""
    pass


class MalformedCommandArgument(AdsError):
    """Admin command argument is not a positive integer id."""

    def __init__(self, usage_key: str):
        super().__init__(usage_key)
        self.usage_key = usage_key


class SubmissionNotFound(AdsError):
    def __init__(self, submission_id: int):
        super().__init__(f"Submission {submission_id} not found")
        self.submission_id = submission_id
