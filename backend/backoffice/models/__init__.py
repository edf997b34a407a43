"""Domain enumerations for the Janitor back-office.

Rows themselves live in Supabase and travel as plain dicts; these enums name
the values the back-office reads and writes.
"""

from backoffice.models.enums import (
    ActorType,
    AnonymizationLevel,
    AuditAction,
    BulkPropertyAction,
    BulkServiceAction,
    BulkUserAction,
    DeletionReason,
    PaymentStatus,
    PaymentType,
    Resource,
    ServiceRequestStatus,
    UserRole,
    ValidationStatus,
)

__all__ = [
    "ActorType",
    "AnonymizationLevel",
    "AuditAction",
    "BulkPropertyAction",
    "BulkServiceAction",
    "BulkUserAction",
    "DeletionReason",
    "PaymentStatus",
    "PaymentType",
    "Resource",
    "ServiceRequestStatus",
    "UserRole",
    "ValidationStatus",
]
