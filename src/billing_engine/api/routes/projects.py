"""Project role, assignment and batch recalculation endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from billing_engine.api.dependencies import DbSession, SessionFactory
from billing_engine.api.schemas import (
    AssignmentRequest,
    AssignmentResponse,
    BatchRecalculationRequest,
    BatchRecalculationResponse,
    ErrorResponse,
    RecalculationFailureResponse,
    RecalculationResponse,
    RoleCreate,
    RoleResponse,
    RoleUpdate,
)
from billing_engine.services.recalculation_service import recalculate_unpaid_for_project
from billing_engine.services.role_service import ProjectRoleService

router = APIRouter(tags=["projects"])

NOT_FOUND = {404: {"model": ErrorResponse}}


# ============================================================================
# Roles
# ============================================================================


@router.get("/projects/{project_id}/roles", response_model=list[RoleResponse])
async def list_roles(db: DbSession, project_id: UUID) -> list[RoleResponse]:
    roles = await ProjectRoleService(db).list_roles(project_id)
    return [RoleResponse.model_validate(role) for role in roles]


@router.post(
    "/projects/{project_id}/roles",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
)
async def create_role(db: DbSession, project_id: UUID, payload: RoleCreate) -> RoleResponse:
    role = await ProjectRoleService(db).create_role(
        project_id, payload.name, payload.hourly_rate_usd
    )
    await db.commit()
    return RoleResponse.model_validate(role)


@router.patch("/roles/{role_id}", response_model=RoleResponse, responses=NOT_FOUND)
async def update_role(db: DbSession, role_id: UUID, payload: RoleUpdate) -> RoleResponse:
    """Rename a role or change its live rate; existing invoices keep their snapshots."""
    role = await ProjectRoleService(db).update_role(role_id, payload.model_dump(exclude_unset=True))
    await db.commit()
    return RoleResponse.model_validate(role)


@router.delete(
    "/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, 409: {"model": ErrorResponse}},
)
async def delete_role(db: DbSession, role_id: UUID) -> None:
    await ProjectRoleService(db).delete_role(role_id)
    await db.commit()


# ============================================================================
# Assignments
# ============================================================================


@router.put(
    "/projects/{project_id}/assignments/{employee_id}",
    response_model=AssignmentResponse,
    responses=NOT_FOUND,
)
async def assign_employee(
    db: DbSession, project_id: UUID, employee_id: UUID, payload: AssignmentRequest
) -> AssignmentResponse:
    assignment = await ProjectRoleService(db).assign_employee(
        employee_id, project_id, role_id=payload.role_id, assigned_by=payload.assigned_by
    )
    await db.commit()
    return AssignmentResponse.model_validate(assignment)


@router.delete(
    "/projects/{project_id}/assignments/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
)
async def unassign_employee(db: DbSession, project_id: UUID, employee_id: UUID) -> None:
    await ProjectRoleService(db).unassign_employee(employee_id, project_id)
    await db.commit()


# ============================================================================
# Batch recalculation
# ============================================================================


@router.post(
    "/projects/{project_id}/recalculate",
    response_model=BatchRecalculationResponse,
)
async def recalculate_project(
    session_factory: SessionFactory,
    project_id: UUID,
    payload: BatchRecalculationRequest,
) -> BatchRecalculationResponse:
    """Re-price the project's draft and sent invoices; each commits on its own."""
    batch = await recalculate_unpaid_for_project(session_factory, project_id, payload.scope)
    return BatchRecalculationResponse(
        project_id=batch.project_id,
        scope=batch.scope,
        processed=batch.processed,
        failed=batch.failed,
        results=[RecalculationResponse.model_validate(r) for r in batch.results],
        failures=[
            RecalculationFailureResponse(invoice_id=f.invoice_id, error=f.error)
            for f in batch.failures
        ],
    )
