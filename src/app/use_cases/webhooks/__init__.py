"""Lifecycle webhook use cases."""

from .dtos import (
    APPLIED,
    DUPLICATE_IGNORED,
    IngestLifecycleEventResponse,
    PurgeProcessedEventsResponse,
)
from .ingest_lifecycle_event_use_case import IngestLifecycleEventUseCase
from .purge_processed_events_use_case import PurgeProcessedEventsUseCase

__all__ = [
    "APPLIED",
    "DUPLICATE_IGNORED",
    "IngestLifecycleEventUseCase",
    "IngestLifecycleEventResponse",
    "PurgeProcessedEventsUseCase",
    "PurgeProcessedEventsResponse",
]
