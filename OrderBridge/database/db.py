from sqlmodel import SQLModel

from OrderBridge.models.models import engine
from OrderBridge.models.product_models import *  # noqa: F401,F403  register tables with SQLModel metadata


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)
