"""Todo API routes — CRUD over the caller's own todos.

Learn: The router is mounted behind get_current_user, so every handler
runs with a verified identity. Each handler passes identity.user_id
explicitly to TodoService; the service scopes every query by it.

Request bodies are not declared as FastAPI body parameters. FastAPI
decodes declared bodies before it resolves any dependency, so an
anonymous request with broken JSON would get 400 instead of 401.
json_body() reads and validates the body inside a dependency that
itself depends on get_current_user, so nothing is parsed until the
token has been checked.

A todo owned by another user answers 404, exactly like a missing one.
Returning 403 would confirm that the id exists.
"""

from typing import Type, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.dependencies import CurrentIdentity, get_current_user
from todoapi.db.engine import get_db
from todoapi.schemas.todo import TodoCreate, TodoRead, TodoUpdate
from todoapi.services.todo_service import TodoService

router = APIRouter(prefix="/todos")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _svc(db: AsyncSession = Depends(get_db)) -> TodoService:
    return TodoService(db)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Todo not found")


def json_body(model: Type[ModelT]):
    """Dependency that parses the JSON body into `model` after auth passed."""

    async def parse(
        request: Request,
        identity: CurrentIdentity = Depends(get_current_user),
    ) -> ModelT:
        try:
            payload = await request.json()
        except ValueError:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "Request body must be valid JSON"}]
            )
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise RequestValidationError(
                [{**err, "loc": ("body", *err["loc"])} for err in e.errors(include_url=False)]
            )

    return parse


def _documented_body(model: Type[BaseModel]) -> dict:
    # Keeps the request schema in /docs now that the body is read by hand.
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


@router.get("", response_model=list[TodoRead])
async def list_todos(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    return await svc.list_for_owner(identity.user_id)


@router.get("/{todo_id}", response_model=TodoRead)
async def get_todo(
    todo_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    todo = await svc.get_for_owner(identity.user_id, todo_id)
    if todo is None:
        raise _not_found()
    return todo


@router.post(
    "",
    response_model=TodoRead,
    status_code=201,
    openapi_extra=_documented_body(TodoCreate),
)
async def create_todo(
    response: Response,
    identity: CurrentIdentity = Depends(get_current_user),
    body: TodoCreate = Depends(json_body(TodoCreate)),
    svc: TodoService = Depends(_svc),
):
    """Create a todo owned by the caller."""
    todo = await svc.create(
        identity.user_id, name=body.name, is_complete=body.is_complete
    )
    response.headers["Location"] = f"/api/todos/{todo.id}"
    return todo


@router.put(
    "/{todo_id}",
    status_code=204,
    openapi_extra=_documented_body(TodoUpdate),
)
async def update_todo(
    todo_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    body: TodoUpdate = Depends(json_body(TodoUpdate)),
    svc: TodoService = Depends(_svc),
):
    """Replace name and completion flag. id and owner are never changed."""
    updated = await svc.update(
        identity.user_id, todo_id, name=body.name, is_complete=body.is_complete
    )
    if not updated:
        raise _not_found()
    return Response(status_code=204)


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(
    todo_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    deleted = await svc.delete(identity.user_id, todo_id)
    if not deleted:
        raise _not_found()
    return Response(status_code=204)
