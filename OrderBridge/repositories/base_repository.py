from sqlmodel import SQLModel, Session, select
from typing import TypeVar, Generic, Type, Optional, List, Any

T = TypeVar('T', bound=SQLModel)


class BaseRepository(Generic[T]):
    """Primary-key lookups and bulk inserts for one SQLModel table"""

    def __init__(self, model_class: Type[T]):
        self.model_class = model_class

    def get_by_id(self, session: Session, id: Any) -> Optional[T]:
        return session.exec(select(self.model_class).where(self.model_class.id == id)).first()

    def create_many(self, session: Session, models: List[T]) -> List[T]:
        session.add_all(models)
        session.commit()
        for model in models:
            session.refresh(model)
        return models
