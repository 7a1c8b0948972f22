"""Registration endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, status

from lessonbook.api.dependencies import AuditDep, IdentityDep, ManagerDep, RouterDep
from lessonbook.api.models import (
    APIResponse,
    AuditRecordResponse,
    BatchResponse,
    IntentUpdate,
    RegistrationBatchCreate,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationUpdate,
    audit_to_response,
    batch_to_response,
    registration_to_response,
)

router = APIRouter(prefix="/registrations", tags=["registrations"])

TableQuery = Query(default=None, description="Explicit trimester table")


@router.get("", response_model=APIResponse[list[RegistrationResponse]])
async def list_registrations(
    manager: ManagerDep,
    trimesters: RouterDep,
    scope: Literal["current", "enrollment"] = Query(
        default="current", description="Which trimester table to list"
    ),
    table: str | None = TableQuery,
    student_id: str | None = Query(
        default=None, description="List one student's registrations across all trimesters"
    ),
) -> APIResponse[list[RegistrationResponse]]:
    """List registrations of a trimester, or of one student."""
    if student_id is not None:
        registrations = await manager.list_for_student(student_id)
    else:
        if table is None and scope == "enrollment":
            table = await trimesters.get_enrollment_trimester_table()
        registrations = await manager.list_registrations(table)
    return APIResponse(data=[registration_to_response(r) for r in registrations])


@router.post(
    "",
    response_model=APIResponse[RegistrationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_registration(
    registration: RegistrationCreate,
    manager: ManagerDep,
    identity: IdentityDep,
    table: str | None = TableQuery,
) -> APIResponse[RegistrationResponse]:
    """Create a registration. Admins bypass class capacity."""
    created = await manager.create(
        registration.to_request(),
        table,
        created_by=identity.user_id,
        privileged=identity.is_admin,
    )
    return APIResponse(data=registration_to_response(created))


@router.post("/batch", response_model=APIResponse[BatchResponse])
async def create_registrations(
    batch: RegistrationBatchCreate,
    manager: ManagerDep,
    identity: IdentityDep,
    table: str | None = TableQuery,
) -> APIResponse[BatchResponse]:
    """Create several registrations, reporting failures per item."""
    result = await manager.create_batch(
        [r.to_request() for r in batch.registrations],
        table,
        created_by=identity.user_id,
        privileged=identity.is_admin,
    )
    return APIResponse(data=batch_to_response(result))


@router.get("/{registration_id}", response_model=APIResponse[RegistrationResponse])
async def get_registration(
    registration_id: str, manager: ManagerDep, table: str | None = TableQuery
) -> APIResponse[RegistrationResponse]:
    """Get a registration by ID."""
    registration = await manager.get(registration_id, table)
    return APIResponse(data=registration_to_response(registration))


@router.patch("/{registration_id}", response_model=APIResponse[RegistrationResponse])
async def update_registration(
    registration_id: str,
    changes: RegistrationUpdate,
    manager: ManagerDep,
    _identity: IdentityDep,
    table: str | None = TableQuery,
) -> APIResponse[RegistrationResponse]:
    """Update a registration (partial update)."""
    updated = await manager.update(
        registration_id, table, changes.model_dump(exclude_unset=True)
    )
    return APIResponse(data=registration_to_response(updated))


@router.put("/{registration_id}/intent", response_model=APIResponse[RegistrationResponse])
async def submit_intent(
    registration_id: str,
    body: IntentUpdate,
    manager: ManagerDep,
    identity: IdentityDep,
    table: str | None = TableQuery,
) -> APIResponse[RegistrationResponse]:
    """Record re-enrollment intent for a registration."""
    updated = await manager.update_intent(
        registration_id, body.intent, submitted_by=identity.user_id, trimester_table=table
    )
    return APIResponse(data=registration_to_response(updated))


@router.delete("/{registration_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_registration(
    registration_id: str,
    manager: ManagerDep,
    identity: IdentityDep,
    table: str | None = TableQuery,
) -> None:
    """Cancel a registration."""
    await manager.delete(registration_id, table, performed_by=identity.user_id)


@router.get(
    "/{registration_id}/history", response_model=APIResponse[list[AuditRecordResponse]]
)
async def get_registration_history(
    registration_id: str, audit: AuditDep
) -> APIResponse[list[AuditRecordResponse]]:
    """Get the audit history of a registration, oldest first."""
    records = await audit.history(registration_id)
    return APIResponse(data=[audit_to_response(r) for r in records])
