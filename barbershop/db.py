# barbershop/db.py

from sqlmodel import SQLModel, create_engine

from .config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=False,          # set to True to see SQL
    connect_args=connect_args,
)


def init_db(bind=engine) -> None:
    from . import models  # noqa: F401  registers StoredCollection

    SQLModel.metadata.create_all(bind)


