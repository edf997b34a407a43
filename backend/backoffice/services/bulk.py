"""Sequential bulk actions."""

import logging
from typing import Any, Awaitable, Callable

from backoffice.schemas.common import BulkFailure, BulkResult, DataProviderError
from backoffice.services.functions import EdgeFunctionError

logger = logging.getLogger(__name__)


async def run_bulk(ids: list[str], operation: Callable[[str], Awaitable[Any]]) -> BulkResult:
    """Apply `operation` to each id in order, collecting failures instead of stopping."""
    result = BulkResult()
    for item_id in ids:
        try:
            await operation(item_id)
        except (DataProviderError, EdgeFunctionError) as e:
            logger.warning(f"[BULK] {item_id} failed: {e.message}")
            result.failed.append(BulkFailure(id=item_id, error=e.message))
        else:
            result.succeeded.append(item_id)
    return result
