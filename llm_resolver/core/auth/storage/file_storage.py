"""
Filesystem-based credential storage.

Stores one JSON record per backend family under
~/.llm-resolver/credentials/ with owner-only permissions. Writes go to a
temporary file in the same directory which then replaces the record, so an
interrupted write never leaves a truncated credential behind.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path

from ..constants import StorageDefaults
from ..credentials import Credential, NoCredential, credential_from_record
from ..exceptions import ConfigurationError, CredentialStoreCorrupt, StorageError, ValidationError
from . import CredentialStore

_logger = logging.getLogger(__name__)

_FAMILY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


def default_home_dir() -> Path:
    """Per-user directory: $LLM_RESOLVER_HOME or ~/.llm-resolver."""
    env_home = os.getenv("LLM_RESOLVER_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / StorageDefaults.HOME_DIR_NAME


class FileSystemCredentialStore(CredentialStore):
    """File-based credential storage.

    Records are created with mode 0600 on Unix systems. Concurrent readers
    are safe; concurrent writers from several processes are not supported.
    """

    def __init__(self, home_dir: str | None = None, *, base_path: Path | None = None):
        """Initialize file-based storage.

        Args:
            home_dir: Resolver home directory; records go to
                <home_dir>/credentials/. Defaults to default_home_dir().
            base_path: Directory holding the records directly (takes
                precedence over home_dir)
        """
        if base_path:
            self.credentials_dir = base_path
        else:
            home = Path(home_dir).expanduser() if home_dir else default_home_dir()
            self.credentials_dir = home / StorageDefaults.CREDENTIALS_DIR_NAME

    def path_for(self, family: str) -> Path:
        if not _FAMILY_PATTERN.match(family):
            raise ConfigurationError(f"Invalid backend family name: {family!r}")
        return self.credentials_dir / f"{family}.json"

    def location(self, family: str) -> str:
        return str(self.path_for(family))

    def load(self, family: str) -> Credential:
        """Read the credential record for ``family``.

        Raises:
            CredentialStoreCorrupt: If the file is not a valid record
            StorageError: If the file exists but cannot be read
        """
        path = self.path_for(family)

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return NoCredential()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            _logger.error("Corrupted credential file %s", path)
            raise CredentialStoreCorrupt(
                str(path), f"not valid JSON ({e.__class__.__name__})"
            ) from e
        except OSError as e:
            _logger.error("Failed to read credential file %s: %s", path, e.strerror)
            raise StorageError(f"Cannot read credential file {path}: {e.strerror}") from e

        try:
            return credential_from_record(data)
        except ValidationError as e:
            _logger.error("Invalid credential record in %s: %s", path, e.message)
            raise CredentialStoreCorrupt(str(path), f"{e.field}: {e.message}") from e

    def save(self, family: str, credential: Credential) -> None:
        """Atomically replace the record for ``family``.

        Raises:
            ConfigurationError: If ``credential`` is not a credential
            StorageError: If the write fails
        """
        if credential is None or not hasattr(credential, "to_record"):
            raise ConfigurationError("Cannot save None; use NoCredential() or clear()")

        if isinstance(credential, NoCredential):
            self.clear(family)
            return

        path = self.path_for(family)
        record = {"schema_version": StorageDefaults.SCHEMA_VERSION, **credential.to_record()}

        tmp_name: str | None = None
        try:
            self.credentials_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.credentials_dir, prefix=f".{family}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                # Restrict before any secret is written
                if hasattr(os, "fchmod"):
                    os.fchmod(f.fileno(), StorageDefaults.FILE_PERMISSIONS)
                json.dump(record, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            _logger.error("Failed to write credential file %s: %s", path, e.strerror)
            raise StorageError(f"Cannot write credential file {path}: {e.strerror}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        _logger.debug("Saved %s credential for '%s' to %s", credential.kind, family, path)

    def clear(self, family: str) -> None:
        """Remove the record for ``family``.

        Raises:
            StorageError: If file removal fails due to I/O errors
        """
        path = self.path_for(family)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            _logger.error("Failed to remove credential file %s: %s", path, e.strerror)
            raise StorageError(f"Cannot remove credential file {path}: {e.strerror}") from e
