"""
API endpoints профилей.

- POST /profiles             - регистрация (без X-User-Id)
- GET  /profiles/me          - текущий профиль
- PUT  /profiles/me          - изменить свой профиль
- POST /profiles/me/avatar   - загрузить аватар
"""

from fastapi import APIRouter, Depends, File, UploadFile, status

from ..models import Profile
from ..services import FileService, ProfileService
from .dependencies import get_current_user, get_file_service, get_profile_service
from .errors import http_error
from .schemas import AvatarResponse, ErrorResponse, ProfileCreate, ProfileResponse, ProfileUpdate

# Регистрация доступна без API ключа
signup_router = APIRouter(prefix="/profiles", tags=["profiles"])
router = APIRouter(prefix="/profiles", tags=["profiles"])


@signup_router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать профиль",
    description="""
    Регистрация пользователя.

    Роль берётся из metadata.role ("user" или "admin"), по умолчанию "user".
    Email уникален без учёта регистра.
    """,
    responses={400: {"model": ErrorResponse, "description": "Email уже занят"}},
)
async def create_profile(
    data: ProfileCreate, service: ProfileService = Depends(get_profile_service)
) -> ProfileResponse:
    try:
        profile = await service.create_profile(
            email=data.email,
            display_name=data.display_name,
            full_name=data.full_name,
            metadata=data.metadata,
        )
        return ProfileResponse.model_validate(profile)
    except ValueError as e:
        raise http_error(e)


@router.get("/me", response_model=ProfileResponse, summary="Текущий профиль")
async def get_me(user: Profile = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(user)


@router.put("/me", response_model=ProfileResponse, summary="Изменить свой профиль")
async def update_me(
    data: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    try:
        profile = await service.update_me(user, **data.model_dump(exclude_unset=True))
        return ProfileResponse.model_validate(profile)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/me/avatar",
    response_model=AvatarResponse,
    summary="Загрузить аватар",
    description="Аватар перезаписывается; URL отдаётся без проверки доступа.",
    responses={400: {"model": ErrorResponse, "description": "Пустой или слишком большой файл"}},
)
async def upload_avatar(
    file: UploadFile = File(...),
    user: Profile = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> AvatarResponse:
    data = await file.read()
    try:
        profile, url = await service.upload_avatar(user, file.filename or "", data)
        return AvatarResponse(profile=ProfileResponse.model_validate(profile), url=url)
    except ValueError as e:
        raise http_error(e)
