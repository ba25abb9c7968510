"""Service layer for the Club Events Platform."""

from .announcement_service import AnnouncementService
from .event_service import EventService
from .event_store import EventStore
from .inquiry_service import InquiryService
from .profile_store import ProfileCompleteness, ProfileStore, check_profile_completeness
from .reconciliation_service import ReconciliationService
from .registration_engine import (
    CancellationOutcome,
    CancellationResult,
    RegistrationEngine,
    RegistrationOutcome,
    RegistrationResult,
)
from .registration_ledger import RegistrationLedger
from .showcase_service import ShowcaseService
from .user_service import UserService

__all__ = [
    "AnnouncementService",
    "EventService",
    "EventStore",
    "InquiryService",
    "ProfileCompleteness",
    "ProfileStore",
    "check_profile_completeness",
    "ReconciliationService",
    "CancellationOutcome",
    "CancellationResult",
    "RegistrationEngine",
    "RegistrationOutcome",
    "RegistrationResult",
    "RegistrationLedger",
    "ShowcaseService",
    "UserService",
]
