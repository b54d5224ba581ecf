"""
DeTransport Ads — in-progress submission sessions.

One session per Telegram user, kept in process memory only (a restart drops all
in-flight dialogues; users begin again with /start). Each step is its own frozen
dataclass carrying exactly the fields collected so far; a transition replaces the
session with the next step's variant.

SessionStore.locked(user_id) is the per-user critical section: the whole
read-modify-write for one inbound message runs inside it, so two messages from the
same user never interleave.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterator, Union

from ads.conf import Plan


class Step(str, Enum):
    AWAITING_TARIFF_CHOICE = "awaiting_tariff_choice"
    AWAITING_TITLE = "awaiting_title"
    AWAITING_DESCRIPTION = "awaiting_description"
    AWAITING_LINK = "awaiting_link"
    AWAITING_CONTACT = "awaiting_contact"
    AWAITING_CUSTOMER_NAME = "awaiting_customer_name"
    AWAITING_MEDIA = "awaiting_media"
    AWAITING_PAYMENT_PROOF = "awaiting_payment_proof"


STEP_ORDER = tuple(Step)


@dataclass(frozen=True)
class AwaitingTariffChoice:
    step: ClassVar[Step] = Step.AWAITING_TARIFF_CHOICE


@dataclass(frozen=True)
class AwaitingTitle:
    step: ClassVar[Step] = Step.AWAITING_TITLE
    plan: Plan


@dataclass(frozen=True)
class AwaitingDescription(AwaitingTitle):
    step: ClassVar[Step] = Step.AWAITING_DESCRIPTION
    title: str


@dataclass(frozen=True)
class AwaitingLink(AwaitingDescription):
    step: ClassVar[Step] = Step.AWAITING_LINK
    description: str


@dataclass(frozen=True)
class AwaitingContact(AwaitingLink):
    step: ClassVar[Step] = Step.AWAITING_CONTACT
    link_url: str


@dataclass(frozen=True)
class AwaitingCustomerName(AwaitingContact):
    step: ClassVar[Step] = Step.AWAITING_CUSTOMER_NAME
    contact_info: str


@dataclass(frozen=True)
class AwaitingMedia(AwaitingCustomerName):
    step: ClassVar[Step] = Step.AWAITING_MEDIA
    customer_name: str

    def submission_fields(self) -> dict:
        """Fields for SubmissionRepository.create (media_url added by the caller)."""
        return {
            "tariff_days": self.plan.days,
            "price_amount": self.plan.price,
            "title": self.title,
            "description": self.description,
            "link_url": self.link_url,
            "contact_info": self.contact_info,
            "customer_name": self.customer_name,
        }


@dataclass(frozen=True)
class AwaitingPaymentProof:
    step: ClassVar[Step] = Step.AWAITING_PAYMENT_PROOF
    submission_id: int


Session = Union[
    AwaitingTariffChoice,
    AwaitingTitle,
    AwaitingDescription,
    AwaitingLink,
    AwaitingContact,
    AwaitingCustomerName,
    AwaitingMedia,
    AwaitingPaymentProof,
]


class SessionStore:
    """Process-lifetime map of user id -> Session with a lock per user."""

    def __init__(self):
        self._sessions: dict[int, Session] = {}
        # user id -> [lock, holders]; dropped when the last holder leaves
        self._locks: dict[int, list] = {}
        self._guard = threading.Lock()

    def get(self, user_id: int) -> Session | None:
        with self._guard:
            return self._sessions.get(user_id)

    def set(self, user_id: int, session: Session) -> None:
        with self._guard:
            self._sessions[user_id] = session

    def delete(self, user_id: int) -> None:
        with self._guard:
            self._sessions.pop(user_id, None)

    def __len__(self):
        with self._guard:
            return len(self._sessions)

    def _acquire_entry(self, user_id: int) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = self._locks[user_id] = [threading.RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _release_entry(self, user_id: int) -> None:
        with self._guard:
            entry = self._locks[user_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[user_id]

    @contextmanager
    def locked(self, user_id: int) -> Iterator[None]:
        lock = self._acquire_entry(user_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(user_id)
