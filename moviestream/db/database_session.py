import os 
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from dotenv import load_dotenv 


def get_db_url() -> str:
    load_dotenv()
    DB_URL = os.getenv("DB_URL")
    if not DB_URL:
        raise RuntimeError("Database connection URL not found in environment variables (DB_URL).")
    return DB_URL


def _connect_args(db_url: str) -> dict:
    # SQLite connections are shared between the request threads of the server
    if db_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": 30}
    return {}


DB_URL = get_db_url()

# Create global DB engine 
engine = create_engine(DB_URL, pool_pre_ping=True, connect_args=_connect_args(DB_URL))

# Create Session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


# Base class for models
class Base(DeclarativeBase):
    pass


def get_db():
    # Create  DB session
    db = SessionLocal()
    try:
        # Return session
        yield db
    finally:
        # Close session on second call
        db.close()
