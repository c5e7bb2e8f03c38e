# pos/session.py
import json
import logging
import os

from . import config
from .client import ApiClient
from .errors import AuthError, PosError
from .models import User, UserRole
from .services import AuthService

logger = logging.getLogger(__name__)


class SessionContext:
    """Sesión autenticada del personal.

    Se crea al arrancar la app (``start`` intenta restaurar el token
    guardado) y se destruye con ``logout``. Instala el token en el
    ``ApiClient`` que comparte con los servicios.
    """

    def __init__(self, api: ApiClient, path: str | None = None):
        self.api = api
        self.auth = AuthService(api)
        self.path = path or config.SESSION_FILE
        self.token: str | None = None
        self.current_user: User | None = None

    def start(self) -> bool:
        try:
            with open(self.path, encoding="utf-8") as fh:
                saved = json.load(fh)
            token = saved["token"]
        except (OSError, ValueError, KeyError, TypeError):
            return False

        self._install(token, None)
        try:
            self.current_user = self.auth.me()
        except AuthError as e:
            logger.info("Token guardado rechazado: %s", e)
            self._clear()
            return False
        except PosError as e:
            # el archivo se conserva para reintentar cuando vuelva la red
            logger.warning("No se pudo verificar la sesión guardada: %s", e)
            self._install(None, None)
            return False
        self._save()
        return True

    def login(self, username: str, password: str) -> User:
        """Inicia sesión; lanza ``AuthError`` o ``TransportError`` si falla."""
        token, user = self.auth.login(username, password)
        self._install(token, user)
        self._save()
        logger.info("Sesión iniciada: %s (%s)", user.username, user.role.value)
        return user

    def logout(self):
        if self.token:
            try:
                self.auth.logout()
            except PosError as e:
                logger.warning("No se pudo cerrar la sesión en el servidor: %s", e)
        self._clear()

    def is_authenticated(self) -> bool:
        return self.token is not None and self.current_user is not None

    def is_admin(self) -> bool:
        return self.is_authenticated() and self.current_user.role == UserRole.ADMIN

    def require_admin(self):
        if not self.is_authenticated():
            raise AuthError("Debes iniciar sesión")
        if not self.is_admin():
            raise AuthError("Solo un administrador puede modificar el catálogo")

    def _install(self, token, user):
        self.token = token
        self.current_user = user
        self.api.token = token

    def _save(self):
        data = {"token": self.token, "user": self.current_user.model_dump(mode="json", by_alias=True)}
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(data, fh)

    def _clear(self):
        self._install(None, None)
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
