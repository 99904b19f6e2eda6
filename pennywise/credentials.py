import os
from typing import MutableMapping, Optional, Protocol

from pennywise.config import SESSION_TOKEN_KEY, TOKEN_ENV_VAR
from pennywise.errors import MissingCredential


class CredentialProvider(Protocol):
    def get_token(self) -> Optional[str]:
        ...


class StaticCredentials:
    def __init__(self, token: Optional[str]):
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token or None


class EnvCredentials:
    def __init__(self, var: str = TOKEN_ENV_VAR):
        self.var = var

    def get_token(self) -> Optional[str]:
        return os.getenv(self.var) or None


class SessionCredentials:
    """Token kept in a session mapping such as ``st.session_state``."""

    def __init__(self, store: MutableMapping, key: str = SESSION_TOKEN_KEY):
        self.store = store
        self.key = key

    def get_token(self) -> Optional[str]:
        return self.store.get(self.key) or None


def require_token(provider: CredentialProvider, resource: str) -> str:
    token = provider.get_token()
    if not token:
        raise MissingCredential(resource)
    return token
