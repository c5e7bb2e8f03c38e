# api/security.py
import secrets


def new_token() -> str:
    return secrets.token_hex(32)
