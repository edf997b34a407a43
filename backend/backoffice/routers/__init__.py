"""API Routers for the Janitor admin back-office."""

from backoffice.routers.auth import router as auth_router
from backoffice.routers.users import router as users_router
from backoffice.routers.properties import router as properties_router
from backoffice.routers.payments import router as payments_router
from backoffice.routers.services import router as services_router
from backoffice.routers.providers import router as providers_router
from backoffice.routers.service_requests import router as service_requests_router
from backoffice.routers.financial import router as financial_router
from backoffice.routers.dashboard import router as dashboard_router
from backoffice.routers.gdpr import router as gdpr_router
from backoffice.routers.forms import router as forms_router

__all__ = [
    "auth_router",
    "users_router",
    "properties_router",
    "payments_router",
    "services_router",
    "providers_router",
    "service_requests_router",
    "financial_router",
    "dashboard_router",
    "gdpr_router",
    "forms_router",
]
