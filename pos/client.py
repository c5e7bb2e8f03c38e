# pos/client.py
import logging

import requests

from . import config
from .errors import (
    AuthError, ConflictError, NotFoundError, PosError, TransitionError,
    TransportError, ValidationError,
)

logger = logging.getLogger(__name__)


class ApiClient:
    """Transporte HTTP hacia el backend del restaurante.

    Cualquier fallo (red, autenticación, 4xx/5xx) se convierte en una
    subclase de ``PosError`` con un mensaje legible. No hay reintentos:
    cada reintento es una nueva acción del usuario.

    ``http`` puede ser cualquier objeto con la interfaz de
    ``requests.Session`` (por ejemplo el ``TestClient`` de FastAPI).
    """

    def __init__(self, base_url: str | None = None, http=None, timeout: float | None = None):
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.token: str | None = None

    def request(self, method: str, path: str, **kwargs):
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            r = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("Fallo de red en %s %s: %s", method, url, e)
            raise TransportError(f"Error conectando con la API: {e}") from e

        if r.status_code >= 400:
            raise self._error(r)
        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    def get(self, path: str, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs):
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs):
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)

    @staticmethod
    def _error(r) -> PosError:
        try:
            body = r.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = None
        field = None
        err = body.get("error")
        if isinstance(err, dict):
            message = err.get("message") or r.text
            code = err.get("code")
        else:
            detail = body.get("detail")
            if isinstance(detail, list) and detail:
                # errores de validación de FastAPI
                first = detail[0]
                field = str(first.get("loc", ["", ""])[-1])
                message = "; ".join(
                    f"{'.'.join(str(p) for p in d.get('loc', [])[1:])}: {d.get('msg')}" for d in detail
                )
            else:
                message = detail if isinstance(detail, str) else (r.text or f"HTTP {r.status_code}")

        logger.warning("La API respondió %s: %s", r.status_code, message)

        if r.status_code in (401, 403):
            return AuthError(message, code=code)
        if r.status_code == 404:
            return NotFoundError(message, code=code)
        if r.status_code == 409:
            if code == "INVALID_TRANSITION":
                return TransitionError(message, code=code)
            return ConflictError(message, code=code)
        if r.status_code == 422:
            return ValidationError(field or code or "", message)
        return PosError(message, code=code)
