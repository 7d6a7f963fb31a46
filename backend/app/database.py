"""
Configuration de la connexion PostgreSQL.
Moteur SQLAlchemy synchrone, une session par requête via get_db.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from app.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : fournit une session BDD et la ferme après la requête."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
