"""Todo API routes — every route is scoped to the authenticated user."""
import logging
from fastapi import APIRouter, Depends, status

from todo_api.dependencies import get_current_user, get_todo_repository
from todo_api.models.user import User
from todo_api.repositories.todos import TodoRepository
from todo_api.schemas.todo import TodoCreate, TodoUpdate, TodoOut
from todo_api.services import todo_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=TodoOut, status_code=status.HTTP_201_CREATED)
def create_todo(
    payload: TodoCreate,
    current_user: User = Depends(get_current_user),
    todos: TodoRepository = Depends(get_todo_repository),
):
    """Create a todo owned by the caller."""
    return todo_service.create_todo(todos, current_user.id, payload)


@router.get("", response_model=list[TodoOut])
def list_todos(
    current_user: User = Depends(get_current_user),
    todos: TodoRepository = Depends(get_todo_repository),
):
    """List the caller's todos, newest first."""
    return todo_service.list_todos(todos, current_user.id)


@router.get("/{todo_id}", response_model=TodoOut)
def get_todo(
    todo_id: int,
    current_user: User = Depends(get_current_user),
    todos: TodoRepository = Depends(get_todo_repository),
):
    return todo_service.get_todo(todos, todo_id, current_user.id)


@router.patch("/{todo_id}", response_model=TodoOut)
def update_todo(
    todo_id: int,
    payload: TodoUpdate,
    current_user: User = Depends(get_current_user),
    todos: TodoRepository = Depends(get_todo_repository),
):
    """Update a todo (partial update)."""
    return todo_service.update_todo(todos, todo_id, current_user.id, payload)


@router.delete("/{todo_id}", response_model=TodoOut)
def delete_todo(
    todo_id: int,
    current_user: User = Depends(get_current_user),
    todos: TodoRepository = Depends(get_todo_repository),
):
    """Delete a todo and return it."""
    return todo_service.remove_todo(todos, todo_id, current_user.id)
