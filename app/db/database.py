# /app/db/database.py

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.core.config import DATABASE_URL

# One engine per process, configured from DATABASE_URL.
# SQLite connections are shared across FastAPI's worker threads.
engine_args = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, **engine_args)


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if DATABASE_URL.startswith("sqlite"):
    event.listen(engine, "connect", enable_sqlite_foreign_keys)

# Session factory; every request gets its own unit of work.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Request-scoped session, closed when the response is sent.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
