"""
API endpoints для комментариев к задачам.

- GET    /tasks/{task_id}/comments  - дерево комментариев
- POST   /tasks/{task_id}/comments  - комментарий или ответ
- PUT    /comments/{id}             - изменить (автор или администратор)
- DELETE /comments/{id}             - удалить вместе с ответами
"""

from fastapi import APIRouter, Depends, status

from ..models import Profile
from ..services import CommentService
from .dependencies import get_comment_service, get_current_user
from .errors import http_error
from .schemas import (
    CommentCreate,
    CommentNodeResponse,
    CommentResponse,
    CommentTreeResponse,
    CommentUpdate,
    ErrorResponse,
    SuccessResponse,
)

router = APIRouter(tags=["comments"])

COMMON_ERRORS = {
    403: {"model": ErrorResponse, "description": "Нет доступа"},
    404: {"model": ErrorResponse, "description": "Задача или комментарий не найдены"},
}


@router.get(
    "/tasks/{task_id}/comments",
    response_model=CommentTreeResponse,
    summary="Комментарии задачи",
    description="""
    Комментарии деревом: новые первыми, ответы вложены в replies.

    Ответ на удалённый или чужой комментарий показывается на верхнем уровне.
    """,
    responses=COMMON_ERRORS,
)
async def get_comments(
    task_id: int,
    user: Profile = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
) -> CommentTreeResponse:
    try:
        forest, total = await service.get_comment_tree(user, task_id)
        return CommentTreeResponse(
            total=total, comments=[CommentNodeResponse.from_node(node) for node in forest]
        )
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/tasks/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить комментарий",
    description="""
    Бизнес-правила:
    - reply_to - комментарий этой же задачи
    - mentions - ID существующих профилей

    Уведомления: упомянутым, исполнителю задачи, автору комментария,
    на который ответили (кроме самого комментатора).
    """,
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}, **COMMON_ERRORS},
)
async def add_comment(
    task_id: int,
    data: CommentCreate,
    user: Profile = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    """
    Пример запроса:
    ```json
    {"comment": "Готово, посмотрите", "reply_to": 12, "mentions": [3]}
    ```
    """
    try:
        comment = await service.add_comment(user, task_id, **data.model_dump())
        return CommentResponse.model_validate(comment)
    except ValueError as e:
        raise http_error(e)


@router.put(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Изменить комментарий",
    responses=COMMON_ERRORS,
)
async def edit_comment(
    comment_id: int,
    data: CommentUpdate,
    user: Profile = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    try:
        comment = await service.edit_comment(
            user, comment_id, data.comment, mentions=data.mentions
        )
        return CommentResponse.model_validate(comment)
    except ValueError as e:
        raise http_error(e)


@router.delete(
    "/comments/{comment_id}",
    response_model=SuccessResponse,
    summary="Удалить комментарий",
    description="Ответы на комментарий удаляются вместе с ним.",
    responses=COMMON_ERRORS,
)
async def delete_comment(
    comment_id: int,
    user: Profile = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
) -> SuccessResponse:
    try:
        await service.delete_comment(user, comment_id)
        return SuccessResponse(message=f"Comment {comment_id} deleted successfully")
    except ValueError as e:
        raise http_error(e)
