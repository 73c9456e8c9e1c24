"""Todo persistence: a storage-agnostic interface and its SQLAlchemy implementation."""
import logging
from datetime import datetime
from typing import Any, Optional, Protocol

from sqlalchemy.orm import Session

from todo_api.models.todo import Todo

logger = logging.getLogger(__name__)


class TodoRepository(Protocol):
    def create(
        self,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> Todo: ...

    def find_all(self, user_id: int) -> list[Todo]: ...

    def find_one(self, todo_id: int, user_id: int) -> Optional[Todo]: ...

    def exists(self, todo_id: int, user_id: int) -> bool: ...

    def update(self, todo_id: int, updates: dict[str, Any]) -> Todo: ...

    def remove(self, todo_id: int) -> Todo: ...


class SqlAlchemyTodoRepository:
    """TodoRepository backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> Todo:
        todo = Todo(user_id=user_id, title=title, description=description, due_date=due_date)
        self.db.add(todo)
        self.db.commit()
        self.db.refresh(todo)
        return todo

    def find_all(self, user_id: int) -> list[Todo]:
        return (
            self.db.query(Todo)
            .filter(Todo.user_id == user_id)
            .order_by(Todo.created_at.desc(), Todo.id.desc())
            .all()
        )

    def find_one(self, todo_id: int, user_id: int) -> Optional[Todo]:
        return self.db.query(Todo).filter(Todo.id == todo_id, Todo.user_id == user_id).first()

    def exists(self, todo_id: int, user_id: int) -> bool:
        found = (
            self.db.query(Todo.id)
            .filter(Todo.id == todo_id, Todo.user_id == user_id)
            .first()
        )
        return found is not None

    def update(self, todo_id: int, updates: dict[str, Any]) -> Todo:
        todo = self.db.query(Todo).filter(Todo.id == todo_id).one()
        for field, value in updates.items():
            setattr(todo, field, value)
        self.db.commit()
        self.db.refresh(todo)
        return todo

    def remove(self, todo_id: int) -> Todo:
        """Delete a todo and return a detached copy of the deleted row."""
        todo = self.db.query(Todo).filter(Todo.id == todo_id).one()
        snapshot = Todo(**{col.name: getattr(todo, col.name) for col in Todo.__table__.columns})
        self.db.delete(todo)
        self.db.commit()
        logger.debug("Deleted todo %s", todo_id)
        return snapshot
