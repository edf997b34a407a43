"""Forms router - select options for relation fields."""

from fastapi import APIRouter, Depends, HTTPException, status

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.schemas.common import SelectOption
from backoffice.services.data_provider import RELATIONSHIPS, DataProvider, get_data_provider

router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("/{resource}/options", response_model=dict[str, list[SelectOption]])
async def get_form_options(
    resource: str,
    provider: DataProvider = Depends(get_data_provider),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Options for every relation field of a resource's edit form."""
    if resource not in RELATIONSHIPS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No form relations for {resource}",
        )
    return (await provider.get_form_options(resource)).unwrap()
