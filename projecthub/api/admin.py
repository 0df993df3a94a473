"""API endpoints консоли администратора."""

from fastapi import APIRouter, Depends, Query

from ..models import Profile
from ..services import AdminService
from .dependencies import get_admin_service, get_current_user
from .errors import http_error
from .schemas import ErrorResponse, ProfileResponse, RoleChange, SystemStatistics

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={403: {"model": ErrorResponse, "description": "Нужна роль администратора"}},
)


@router.get("/profiles", response_model=list[ProfileResponse], summary="Пользователи")
async def get_profiles(
    search: str | None = Query(None, max_length=200, description="Имя или email"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user: Profile = Depends(get_current_user),
    service: AdminService = Depends(get_admin_service),
) -> list[ProfileResponse]:
    profiles = await service.list_profiles(user, search=search, skip=skip, limit=limit)
    return [ProfileResponse.model_validate(p) for p in profiles]


@router.put(
    "/profiles/{profile_id}/role",
    response_model=ProfileResponse,
    summary="Сменить роль пользователя",
    responses={404: {"model": ErrorResponse, "description": "Профиль не найден"}},
)
async def change_role(
    profile_id: int,
    data: RoleChange,
    user: Profile = Depends(get_current_user),
    service: AdminService = Depends(get_admin_service),
) -> ProfileResponse:
    try:
        return ProfileResponse.model_validate(
            await service.change_role(user, profile_id, data.role)
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/stats", response_model=SystemStatistics, summary="Статистика системы")
async def get_system_stats(
    user: Profile = Depends(get_current_user),
    service: AdminService = Depends(get_admin_service),
) -> SystemStatistics:
    return SystemStatistics(**await service.get_system_statistics(user))
