# config.py
import os
from dotenv import load_dotenv

# Cargar variables del archivo .env
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL is None:
    raise ValueError("No se encontró DATABASE_URL en .env. Por favor, revisa tu archivo .env")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# usuario administrador inicial (ver api/seed.py)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
