"""Company profile used on document headers and as document defaults."""

from fastapi import APIRouter, Depends

from backoffice.routes.deps import RequestContext, get_context, get_manager_context
from backoffice.schemas.admin import CompanySettingsPayload, CompanySettingsResponse
from backoffice.services.company import company_defaults, get_company_settings, upsert_company_settings


router = APIRouter()


@router.get("", response_model=CompanySettingsResponse)
async def get_settings(ctx: RequestContext = Depends(get_context)) -> CompanySettingsResponse:
    """Return the saved profile, or defaults when none has been saved yet."""
    record = await get_company_settings(ctx.db, ctx.tenant)
    if record is None:
        return CompanySettingsResponse(**company_defaults(ctx.tenant))
    return CompanySettingsResponse.model_validate(record)


@router.put("", response_model=CompanySettingsResponse)
async def save_settings(
    payload: CompanySettingsPayload,
    ctx: RequestContext = Depends(get_manager_context),
) -> CompanySettingsResponse:
    record = await upsert_company_settings(ctx.db, ctx.tenant, payload.model_dump(exclude_unset=True))
    return CompanySettingsResponse.model_validate(record)
