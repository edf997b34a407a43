"""Services for the Janitor back-office."""

from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.query_cache import QueryCache, get_query_cache
from backoffice.services.functions import EdgeFunctionsClient, get_functions_client
from backoffice.services.audit import AuditService
from backoffice.services.users import UserService
from backoffice.services.anonymization import AnonymizationService
from backoffice.services.properties import PropertyService
from backoffice.services.payments import PaymentService
from backoffice.services.catalog import CatalogService
from backoffice.services.service_requests import ServiceRequestService
from backoffice.services.financial import FinancialService
from backoffice.services.dashboard import DashboardService
from backoffice.services.invoices import InvoicePDFGenerator, get_invoice_generator

__all__ = [
    "DataProvider",
    "get_data_provider",
    "QueryCache",
    "get_query_cache",
    "EdgeFunctionsClient",
    "get_functions_client",
    "AuditService",
    "UserService",
    "AnonymizationService",
    "PropertyService",
    "PaymentService",
    "CatalogService",
    "ServiceRequestService",
    "FinancialService",
    "DashboardService",
    "InvoicePDFGenerator",
    "get_invoice_generator",
]
