# pos/config.py
import os
from dotenv import load_dotenv

# Cargar variables del archivo .env
load_dotenv()

API_URL = os.getenv("API_URL", "http://127.0.0.1:8000")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
SESSION_FILE = os.getenv("POS_SESSION_FILE", os.path.expanduser("~/.pos_session.json"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
