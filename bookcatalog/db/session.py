from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bookcatalog.config import get_settings

_settings = get_settings()

DATABASE_URL = _settings.database_url

engine = create_engine(
    DATABASE_URL,
    future=True,
    echo=_settings.SQL_ECHO,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
