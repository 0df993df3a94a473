"""Публичная раздача объектов хранилища (аватары)."""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..storage import AVATARS_BUCKET, LocalObjectStorage
from .dependencies import get_storage
from .schemas import ErrorResponse

router = APIRouter(prefix="/storage", tags=["storage"])

# Файлы проектов отдаются только через /files/{id}/download с проверкой доступа
PUBLIC_BUCKETS = frozenset({AVATARS_BUCKET})


@router.get(
    "/{bucket}/{key:path}",
    summary="Получить объект",
    response_class=Response,
    responses={404: {"model": ErrorResponse, "description": "Объект не найден"}},
)
async def get_object(
    bucket: str, key: str, storage: LocalObjectStorage = Depends(get_storage)
) -> Response:
    if bucket not in PUBLIC_BUCKETS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Bucket '{bucket}' not found"
        )

    data = storage.download(bucket, key)
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
