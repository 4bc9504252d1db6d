# session.py - Motor SQLAlchemy, fábrica de sesiones y utilidades de esquema
# El motor se crea en el arranque de la app (lifespan) y se guarda en app.state;
# cada request obtiene su propia sesión vía get_db().

import logging
import os
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Crea el motor para la URL indicada.

    - SQLite en memoria: una única conexión compartida (StaticPool), si no
      cada conexión vería una base vacía distinta.
    - SQLite en fichero: crea el directorio padre si no existe.
    """
    url = make_url(database_url)
    kwargs = {"echo": echo}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if not url.database or url.database == ":memory:":
            kwargs["poolclass"] = StaticPool
        else:
            db_dir = os.path.dirname(os.path.abspath(url.database))
            if not os.path.isdir(db_dir):
                os.makedirs(db_dir, exist_ok=True)
                logger.info(f"📁 Created database directory: {db_dir}")

    engine = create_engine(url, **kwargs)
    logger.info(f"✅ Database engine ready: {url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Crea la tabla clients y sus índices si no existen."""
    # registra los modelos en Base.metadata
    from app.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database schema initialized")


def reset_db(engine: Engine) -> None:
    """Elimina la tabla clients y sus índices. Borra todos los datos."""
    from app.db import models  # noqa: F401

    logger.warning("⚠️ Resetting database - this will delete all data!")
    Base.metadata.drop_all(bind=engine)


def is_db_initialized(engine: Engine) -> bool:
    return inspect(engine).has_table("clients")


def get_db(request: Request) -> Iterator[Session]:
    """Dependencia FastAPI: una sesión por request, cerrada al terminar."""
    session_factory: sessionmaker = request.app.state.session_factory
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
