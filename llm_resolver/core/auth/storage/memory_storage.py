"""
In-memory credential storage for testing and ephemeral use.

Data is lost when the process exits.
"""

from ..credentials import Credential, NoCredential
from ..exceptions import ConfigurationError
from . import CredentialStore


class InMemoryCredentialStore(CredentialStore):
    """Dictionary-backed credential storage.

    Counts writes so tests can assert that nothing was persisted.
    """

    def __init__(self, initial: dict[str, Credential] | None = None) -> None:
        self._data: dict[str, Credential] = dict(initial or {})
        self.save_count = 0

    def load(self, family: str) -> Credential:
        return self._data.get(family, NoCredential())

    def save(self, family: str, credential: Credential) -> None:
        if credential is None:
            raise ConfigurationError("Cannot save None; use NoCredential() or clear()")
        self.save_count += 1
        if isinstance(credential, NoCredential):
            self._data.pop(family, None)
            return
        self._data[family] = credential

    def clear(self, family: str) -> None:
        self._data.pop(family, None)

    def __repr__(self) -> str:
        families = ", ".join(sorted(self._data)) or "none"
        return f"InMemoryCredentialStore(families={families})"
