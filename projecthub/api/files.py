"""
API endpoints файлов проекта.

- GET    /projects/{id}/files   - список файлов
- POST   /projects/{id}/files   - загрузить (multipart/form-data, поле "file")
- GET    /files/{id}/download   - содержимое с сохранённым content type
- DELETE /files/{id}            - удалить объект и запись
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from ..models import Profile
from ..services import FileService
from .dependencies import get_current_user, get_file_service
from .errors import http_error
from .schemas import ErrorResponse, FileResponse, SuccessResponse

router = APIRouter(tags=["files"])

COMMON_ERRORS = {
    403: {"model": ErrorResponse, "description": "Нет доступа"},
    404: {"model": ErrorResponse, "description": "Проект или файл не найдены"},
}


@router.get(
    "/projects/{project_id}/files",
    response_model=list[FileResponse],
    summary="Файлы проекта",
    description="Новые первыми.",
    responses=COMMON_ERRORS,
)
async def get_files(
    project_id: int,
    user: Profile = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> list[FileResponse]:
    try:
        return [FileResponse.model_validate(f) for f in await service.list_files(user, project_id)]
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/projects/{project_id}/files",
    response_model=FileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Загрузить файл",
    description="Пустой файл или файл больше MAX_UPLOAD_BYTES (по умолчанию 10 MB) → 400.",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}, **COMMON_ERRORS},
)
async def upload_file(
    project_id: int,
    file: UploadFile = File(..., description="Загружаемый файл"),
    user: Profile = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> FileResponse:
    """
    Пример запроса:
    ```
    curl -X POST -H "X-API-Key: ..." -H "X-User-Id: 1" \\
         -F "file=@plan.pdf" http://localhost:8000/api/v1/projects/1/files
    ```
    """
    data = await file.read()
    try:
        stored = await service.upload_file(
            user, project_id, file.filename or "", data, content_type=file.content_type
        )
        return FileResponse.model_validate(stored)
    except ValueError as e:
        raise http_error(e)


@router.get(
    "/files/{file_id}/download",
    summary="Скачать файл",
    response_class=Response,
    responses={200: {"description": "Содержимое файла"}, **COMMON_ERRORS},
)
async def download_file(
    file_id: int,
    user: Profile = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> Response:
    try:
        stored, data = await service.download_file(user, file_id)
    except ValueError as e:
        raise http_error(e)

    return Response(
        content=data,
        media_type=stored.file_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(stored.filename)}"
        },
    )


@router.delete(
    "/files/{file_id}",
    response_model=SuccessResponse,
    summary="Удалить файл",
    responses=COMMON_ERRORS,
)
async def delete_file(
    file_id: int,
    user: Profile = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> SuccessResponse:
    try:
        await service.delete_file(user, file_id)
        return SuccessResponse(message=f"File {file_id} deleted successfully")
    except ValueError as e:
        raise http_error(e)
