"""
Typed repositories over the SQLAlchemy session.

Each repository is bound to one model class and an explicit session; every
write commits and returns its result, so callers never depend on implicit
shared state.
"""

from typing import Generic, List, Optional, Type, TypeVar

from models import Asset, db

T = TypeVar('T')


class Repository(Generic[T]):
    """CRUD operations for a single model class."""

    model: Type[T]

    def __init__(self, session=None, model: Optional[Type[T]] = None):
        self.session = session if session is not None else db.session
        if model is not None:
            self.model = model

    def get(self, id) -> Optional[T]:
        return self.session.get(self.model, id)

    def exists(self, id) -> bool:
        return self.get(id) is not None

    def list(self, **filters) -> List[T]:
        query = self.session.query(self.model)
        if filters:
            query = query.filter_by(**filters)
        return query.order_by(self.model.id).all()

    def count(self) -> int:
        return self.session.query(self.model).count()

    def add(self, entity: T) -> T:
        self.session.add(entity)
        self.session.commit()
        return entity

    def update(self, entity: T, **changes) -> T:
        for field, value in changes.items():
            if not hasattr(self.model, field):
                raise AttributeError(f'{self.model.__name__} has no field {field!r}')
            # reading first loads expired values so the audit diff sees the old one
            if getattr(entity, field) != value:
                setattr(entity, field, value)
        self.session.commit()
        return entity

    def delete(self, id) -> bool:
        entity = self.get(id)
        if entity is None:
            return False
        self.session.delete(entity)
        self.session.commit()
        return True


class AssetRepository(Repository[Asset]):
    model = Asset

    def list_ordered(self) -> List[Asset]:
        """All assets, newest purchase first."""
        return (self.session.query(Asset)
                .order_by(Asset.purchase_date.desc(), Asset.id)
                .all())

    def search(self, text) -> List[Asset]:
        """Assets whose name or description contains text."""
        pattern = f'%{text.strip()}%'
        return (self.session.query(Asset)
                .filter(db.or_(Asset.name.ilike(pattern),
                               Asset.description.ilike(pattern)))
                .order_by(Asset.purchase_date.desc(), Asset.id)
                .all())
