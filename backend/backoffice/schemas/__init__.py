"""Pydantic schemas for the Janitor back-office API."""

from backoffice.schemas.common import *
from backoffice.schemas.auth import *
from backoffice.schemas.user import *
from backoffice.schemas.property import *
from backoffice.schemas.payment import *
from backoffice.schemas.service import *
from backoffice.schemas.financial import *
from backoffice.schemas.dashboard import *
