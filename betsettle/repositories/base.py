"""
Base repository class for data access.

Repositories keep query logic out of services and routes, and give the
settlement engine a single place to read its snapshot from.

Example:
    class GameRepository(BaseRepository[Game]):
        def find_final(self) -> List[Game]:
            return self.where(Game.is_final.is_(True))
"""
from typing import TypeVar, Generic, Type, Optional, List, Any

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Common data access methods for one model.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
        pk_field: Name of the model's primary key column
    """

    pk_field = "id"

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    @property
    def pk(self):
        return getattr(self.model_type, self.pk_field)

    def find_by_id(self, id: Any) -> Optional[T]:
        """Find a single record by primary key."""
        return self.db.query(self.model_type).filter(self.pk == id).first()

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def where(self, *criterion) -> List[T]:
        """Filter records using SQLAlchemy expressions."""
        return self.db.query(self.model_type).filter(*criterion).all()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.pk))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    def create(self, **kwargs) -> T:
        """Create a new record (not yet committed)."""
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        return instance

    def delete(self, id: Any) -> bool:
        """
        Delete a record by primary key (not yet committed).

        Returns:
            True if deleted, False if not found
        """
        instance = self.find_by_id(id)
        if instance is None:
            return False
        self.db.delete(instance)
        return True
