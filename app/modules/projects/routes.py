from fastapi import APIRouter, Depends, Response
from app.modules.environments.routes import get_project_environment_service
from app.modules.projects.schemas import (
    ProjectCreate, ProjectResponse, ProjectEnvironmentAdd, ProjectEnvironmentResponse
)
from app.modules.projects.service import ProjectEnvironmentService
from typing import List

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    return service.create_project(project_data)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(service: ProjectEnvironmentService = Depends(get_project_environment_service)):
    return service.list_projects()


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    return service.get_project(project_id)


@router.post("/{project_id}/environments", response_model=ProjectEnvironmentResponse)
async def add_environment_to_project(
    project_id: str,
    body: ProjectEnvironmentAdd,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    """Link an environment to the project; it must be enabled globally first"""
    return service.add_environment_to_project(project_id, body.environment)


@router.post("/{project_id}/environments/{environment}/on", status_code=204)
async def enable_project_environment(
    project_id: str,
    environment: str,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    service.set_project_environment_enabled(project_id, environment, True)
    return Response(status_code=204)


@router.post("/{project_id}/environments/{environment}/off", status_code=204)
async def disable_project_environment(
    project_id: str,
    environment: str,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    service.set_project_environment_enabled(project_id, environment, False)
    return Response(status_code=204)


@router.delete("/{project_id}/environments/{environment}", status_code=204)
async def remove_environment_from_project(
    project_id: str,
    environment: str,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    service.remove_environment_from_project(project_id, environment)
    return Response(status_code=204)
