"""Project API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_principal, require_admin
from backend.app.db.base import get_db
from backend.app.schemas.project import ProjectDelete, ProjectListResponse, ProjectRename
from backend.app.services import projects as project_service
from backend.app.services.access_control import Principal

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ProjectListResponse:
    """Projects the current principal can access, with lead statistics."""
    projects = await project_service.list_projects(db, principal)
    return ProjectListResponse(projects=projects)


@router.patch("")
async def rename_project(
    request: ProjectRename,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> dict:
    moved = await project_service.rename_project(db, request.current_name, request.new_name)
    await db.commit()
    return {"success": True, "reports_updated": moved}


@router.delete("")
async def delete_project(
    request: ProjectDelete,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> dict:
    """Delete a project; its reports move to the unassigned project."""
    detached = await project_service.delete_project(db, request.project_name)
    await db.commit()
    return {"success": True, "reports_detached": detached}
