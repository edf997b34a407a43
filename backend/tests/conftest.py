import os

import pytest

os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("CLEANUP_API_TOKEN", "cleanup-token")

from backoffice.core.config import get_settings  # noqa: E402
from backoffice.core.supabase import set_supabase_client  # noqa: E402
from backoffice.services.functions import set_functions_client  # noqa: E402
from backoffice.services.query_cache import get_query_cache  # noqa: E402

from fakes import FakeSupabase  # noqa: E402


@pytest.fixture(autouse=True)
def reset_singletons():
    """Every test starts with a cold cache and no shared clients."""
    get_settings.cache_clear()
    get_query_cache().clear()
    set_supabase_client(None)
    set_functions_client(None)
    yield
    get_query_cache().clear()
    set_supabase_client(None)
    set_functions_client(None)


@pytest.fixture
def fake_supabase():
    client = FakeSupabase()
    set_supabase_client(client)
    return client
