from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL

# SQLite necesita compartir la conexión entre hilos del servidor
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Configuración de SQLAlchemy
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
