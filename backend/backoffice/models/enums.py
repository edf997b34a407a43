"""Enumeration types for the back-office domain model."""

from enum import Enum


class UserRole(str, Enum):
    """Role stored on profiles.role."""
    ADMIN = "admin"
    PROPERTY_OWNER = "property_owner"
    TRAVELER = "traveler"
    SERVICE_PROVIDER = "service_provider"
    TENANT = "tenant"  # legacy rows only, never assigned by the back-office


class ValidationStatus(str, Enum):
    """Moderation status of a property listing."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    """Status of a payment row."""
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentType(str, Enum):
    """What a payment was for."""
    BOOKING = "booking"
    SUBSCRIPTION = "subscription"
    SERVICE = "service"
    PROVIDER_PAYMENT = "provider_payment"
    REFUND = "refund"
    COMMISSION = "commission"
    OTHER = "other"


class ServiceRequestStatus(str, Enum):
    """Lifecycle of a service (quote) request."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class AnonymizationLevel(str, Enum):
    """GDPR anonymization depth."""
    PARTIAL = "partial"  # personal data replaced, business rows kept
    FULL = "full"        # business rows deleted as well


class DeletionReason(str, Enum):
    """Why an account was deleted or anonymized."""
    USER_REQUEST = "user_request"
    ADMIN_DECISION = "admin_decision"
    GDPR_COMPLIANCE = "gdpr_compliance"
    INACTIVITY = "inactivity"
    TERMS_VIOLATION = "terms_violation"


DELETION_REASON_LABELS = {
    DeletionReason.USER_REQUEST: "Deleted at the user's request",
    DeletionReason.ADMIN_DECISION: "Deleted by an administrator",
    DeletionReason.GDPR_COMPLIANCE: "GDPR compliance",
    DeletionReason.INACTIVITY: "Inactive account",
    DeletionReason.TERMS_VIOLATION: "Terms of service violation",
}


class AuditAction(str, Enum):
    """Audit log action types written to audit_logs.action."""
    PASSWORD_RESET = "password_reset"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_ANONYMIZED = "user_anonymized"
    USER_RESTORED = "user_restored"
    BULK_ACTION = "bulk_action"
    PROPERTY_APPROVED = "property_approved"
    PROPERTY_REJECTED = "property_rejected"
    PROPERTY_PENDING = "property_pending"


class ActorType(str, Enum):
    """Who performed an audited action."""
    ADMIN = "admin"
    USER = "user"
    SYSTEM = "system"


class BulkUserAction(str, Enum):
    """Bulk operations on the users list."""
    VALIDATE = "validate"
    SET_PENDING = "set_pending"
    SUSPEND = "suspend"
    UNSUSPEND = "unsuspend"
    CHANGE_ROLE = "change_role"
    SET_VIP = "set_vip"
    REMOVE_VIP = "remove_vip"
    DELETE = "delete"


class BulkPropertyAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"


class BulkServiceAction(str, Enum):
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"


class Resource(str, Enum):
    """Remote tables handled by the data provider."""
    PROFILES = "profiles"
    PROPERTIES = "properties"
    BOOKINGS = "bookings"
    PAYMENTS = "payments"
    SERVICES = "services"
    SERVICE_REQUESTS = "service_requests"
    SUBSCRIPTIONS = "subscriptions"
    INTERVENTIONS = "interventions"
    REVIEWS = "reviews"
    NOTIFICATIONS = "notifications"
    AUDIT_LOGS = "audit_logs"
    CHAT_REPORTS = "chat_reports"
