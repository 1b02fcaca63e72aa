# app/core/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.core.config import get_settings

settings = get_settings()

engine_options = {}
if settings.DATABASE_URL.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}
# an in-memory database only exists on its one connection
if settings.DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
    engine_options["poolclass"] = StaticPool

engine = create_engine(settings.DATABASE_URL, **engine_options)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# One session per request; blob store calls commit individually
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
