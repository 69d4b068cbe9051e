from fastapi import APIRouter, Depends, Response
from app.core.dependencies import get_environment_store, get_project_store
from app.modules.environments.schemas import (
    EnvironmentCreate, EnvironmentUpdate, EnvironmentResponse, EnvironmentsResponse,
    SortOrderUpdate, NameValidationRequest, NameValidationResponse
)
from app.modules.environments.service import EnvironmentService, EnvironmentPolicy
from app.modules.projects.schemas import EnvironmentsProjectResponse
from app.modules.projects.service import ProjectEnvironmentService
from app.config import settings

router = APIRouter(prefix="/environments", tags=["environments"])


def get_environment_service(
    store=Depends(get_environment_store),
    project_store=Depends(get_project_store)
) -> EnvironmentService:
    return EnvironmentService(store, project_store, EnvironmentPolicy.from_settings(settings))


def get_project_environment_service(
    store=Depends(get_environment_store),
    project_store=Depends(get_project_store)
) -> ProjectEnvironmentService:
    return ProjectEnvironmentService(project_store, store)


@router.get("", response_model=EnvironmentsResponse)
async def get_all_environments(service: EnvironmentService = Depends(get_environment_service)):
    """Retrieve all environments ordered by sort order, then name"""
    return EnvironmentsResponse(environments=service.get_all())


@router.post("", response_model=EnvironmentResponse, status_code=201)
async def create_environment(
    environment_data: EnvironmentCreate,
    service: EnvironmentService = Depends(get_environment_service)
):
    """Create a new environment; it starts out disabled"""
    return service.create_environment(environment_data)


@router.post("/validate", response_model=NameValidationResponse)
async def validate_environment_name(
    body: NameValidationRequest,
    service: EnvironmentService = Depends(get_environment_service)
):
    """Check whether a name is free to use"""
    return NameValidationResponse(name=body.name, available=service.validate_name(body.name))


@router.put("/sort-order", status_code=200)
async def update_sort_order(
    sort_orders: SortOrderUpdate,
    service: EnvironmentService = Depends(get_environment_service)
):
    """Update sort orders for the named environments. Environments not specified are unaffected."""
    service.update_sort_order(sort_orders.root)
    return Response(status_code=200)


@router.get("/project/{project_id}", response_model=EnvironmentsProjectResponse)
async def get_project_environments(
    project_id: str,
    service: ProjectEnvironmentService = Depends(get_project_environment_service)
):
    """Environments enabled both globally and for the project"""
    return EnvironmentsProjectResponse(environments=service.get_project_environments(project_id))


@router.get("/{name}", response_model=EnvironmentResponse)
async def get_environment(
    name: str,
    service: EnvironmentService = Depends(get_environment_service)
):
    return service.get(name)


@router.put("/update/{name}", response_model=EnvironmentResponse)
async def update_environment(
    name: str,
    environment_data: EnvironmentUpdate,
    service: EnvironmentService = Depends(get_environment_service)
):
    """Update type or sort order; the name cannot be changed"""
    return service.update_environment(name, environment_data)


@router.delete("/{name}", status_code=204)
async def delete_environment(
    name: str,
    service: EnvironmentService = Depends(get_environment_service)
):
    service.delete_environment(name)
    return Response(status_code=204)


@router.post("/{name}/on", status_code=204)
async def toggle_environment_on(
    name: str,
    service: EnvironmentService = Depends(get_environment_service)
):
    """Make the environment available for projects to enable"""
    service.toggle_environment(name, True)
    return Response(status_code=204)


@router.post("/{name}/off", status_code=204)
async def toggle_environment_off(
    name: str,
    service: EnvironmentService = Depends(get_environment_service)
):
    """Hide the environment from every project that uses it"""
    service.toggle_environment(name, False)
    return Response(status_code=204)
