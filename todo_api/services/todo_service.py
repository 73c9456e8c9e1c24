"""Todo service — per-user CRUD behind an ownership check.

A todo that does not exist and a todo owned by someone else produce the
same NotFound error. Update and remove check first and mutate second, in
two separate round-trips.
"""
import logging

from todo_api.exceptions import NotFoundError
from todo_api.models.todo import Todo
from todo_api.repositories.todos import TodoRepository
from todo_api.schemas.todo import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)


def _not_found(todo_id: int) -> NotFoundError:
    return NotFoundError(f"Todo with ID {todo_id} not found")


def create_todo(todos: TodoRepository, user_id: int, payload: TodoCreate) -> Todo:
    todo = todos.create(
        user_id=user_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
    )
    logger.info("Created todo %s for user %s", todo.id, user_id)
    return todo


def list_todos(todos: TodoRepository, user_id: int) -> list[Todo]:
    """All of the caller's todos, newest first."""
    return todos.find_all(user_id)


def get_todo(todos: TodoRepository, todo_id: int, user_id: int) -> Todo:
    todo = todos.find_one(todo_id, user_id)
    if not todo:
        logger.warning("Todo %s not found for user %s", todo_id, user_id)
        raise _not_found(todo_id)
    return todo


def _ensure_owned(todos: TodoRepository, todo_id: int, user_id: int) -> None:
    if not todos.exists(todo_id, user_id):
        logger.warning("Todo %s not found or not owned by user %s", todo_id, user_id)
        raise _not_found(todo_id)


def update_todo(todos: TodoRepository, todo_id: int, user_id: int, payload: TodoUpdate) -> Todo:
    """Partial update: only fields present in the request body change."""
    _ensure_owned(todos, todo_id, user_id)
    updates = payload.model_dump(exclude_unset=True)
    todo = todos.update(todo_id, updates)
    logger.info("Updated todo %s (%s)", todo_id, ", ".join(sorted(updates)) or "no fields")
    return todo


def remove_todo(todos: TodoRepository, todo_id: int, user_id: int) -> Todo:
    _ensure_owned(todos, todo_id, user_id)
    todo = todos.remove(todo_id)
    logger.info("Removed todo %s for user %s", todo_id, user_id)
    return todo
