"""
Storage abstraction for credentials.

One credential record exists per backend family. Implementations:
- FileSystemCredentialStore: ~/.llm-resolver/credentials/<family>.json
- InMemoryCredentialStore: for tests and ephemeral use
"""

from abc import ABC, abstractmethod

from ..credentials import Credential, NoCredential


class CredentialStore(ABC):
    """Abstract credential storage keyed by backend family."""

    @abstractmethod
    def load(self, family: str) -> Credential:
        """Read the stored credential.

        Returns:
            The credential, or NoCredential if nothing is stored

        Raises:
            CredentialStoreCorrupt: If stored data exists but is unreadable
            StorageError: If the storage cannot be accessed
        """

    @abstractmethod
    def save(self, family: str, credential: Credential) -> None:
        """Replace the stored credential for ``family``.

        Saving NoCredential is equivalent to clear().

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def clear(self, family: str) -> None:
        """Remove the stored credential. Missing data is not an error.

        Raises:
            StorageError: If removal fails
        """

    def has_credential(self, family: str) -> bool:
        """True if something other than NoCredential is stored."""
        return not isinstance(self.load(family), NoCredential)

    def location(self, family: str) -> str:
        """Human-readable location of the record, for messages."""
        return f"<{type(self).__name__}:{family}>"


# Import implementations (E402 exemption: implementations need the base class)
from .file_storage import FileSystemCredentialStore  # noqa: E402
from .memory_storage import InMemoryCredentialStore  # noqa: E402

__all__ = [
    "CredentialStore",
    "FileSystemCredentialStore",
    "InMemoryCredentialStore",
]
