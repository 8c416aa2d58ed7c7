"""Project endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.business.statuses import ProjectStatus
from backoffice.observability.tracing import get_tracer
from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.parties import ProjectCreate, ProjectResponse, ProjectUpdate
from backoffice.services.parties import create_project, delete_project, update_project
from backoffice.storage.models import Project
from backoffice.storage.repository import TenantRepository


router = APIRouter()
tracer = get_tracer(__name__)


@router.post("", response_model=ProjectResponse, status_code=201)
async def add_project(
    payload: ProjectCreate,
    ctx: RequestContext = Depends(get_context),
) -> ProjectResponse:
    with tracer.start_as_current_span("create_project") as span:
        span.set_attribute("tenant", ctx.tenant)
        project = await create_project(ctx.db, ctx.tenant, payload.model_dump())
        return ProjectResponse.model_validate(project)


@router.get("", response_model=Page[ProjectResponse])
async def list_projects(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None),
    status: Optional[ProjectStatus] = Query(None),
    customer_id: Optional[int] = Query(None),
) -> Page[ProjectResponse]:
    filters = []
    if status:
        filters.append(Project.status == status.value)
    if customer_id is not None:
        filters.append(Project.customer_id == customer_id)

    items, total = await TenantRepository(Project, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("name", "description"),
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return to_page(items, total, pagination, ProjectResponse)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, ctx: RequestContext = Depends(get_context)) -> ProjectResponse:
    project = await TenantRepository(Project, ctx.db, ctx.tenant).get_or_404(project_id)
    return ProjectResponse.model_validate(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def edit_project(
    project_id: int,
    payload: ProjectUpdate,
    ctx: RequestContext = Depends(get_context),
) -> ProjectResponse:
    project = await update_project(ctx.db, ctx.tenant, project_id, payload.model_dump(exclude_unset=True))
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=204)
async def remove_project(project_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await delete_project(ctx.db, ctx.tenant, project_id)
    return Response(status_code=204)
