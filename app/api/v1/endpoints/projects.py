"""API endpoints for project lifecycle actions owned by the ledger."""
from uuid import UUID

from fastapi import APIRouter

from app.api.deps import DB, AdminUser
from app.api.v1.endpoints.commissions import approve_project_completion
from app.schemas.base import Envelope
from app.schemas.commission import ProjectCompletionResponse

router = APIRouter()


@router.put("/{project_id}/complete", response_model=Envelope[ProjectCompletionResponse])
async def complete_project(
    project_id: UUID,
    db: DB,
    admin: AdminUser,
):
    """Mark a project completed; same operation as /commissions/approve-project."""
    return await approve_project_completion(db, project_id, admin.id)
