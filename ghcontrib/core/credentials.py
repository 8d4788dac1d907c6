"""Credentials file loading, with optional GPG decryption."""

from __future__ import annotations

import subprocess
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ghcontrib.exceptions import CredentialsError

log = structlog.get_logger("ghcontrib.credentials")

DEFAULT_CREDENTIALS_PATH = "gh-tokens.json"


class Credential(BaseModel):
    """A GitHub username and the API token used to query on its behalf."""

    username: str
    token: str = Field(repr=False)


_CREDENTIALS_ADAPTER = TypeAdapter(list[Credential])

# Shown in the CLI help text.
SAMPLE_CREDENTIALS = [
    Credential(username="your-github-username", token="your-github-api-token"),
    Credential(username="your-next-github-username", token="your-next-github-api-token"),
]


def sample_credentials_json() -> str:
    return _CREDENTIALS_ADAPTER.dump_json(SAMPLE_CREDENTIALS, indent=2).decode()


def read_credentials_file(path: str | Path, *, encrypted: bool = False) -> bytes:
    """Return the raw bytes of the credentials file.

    Encrypted files are piped through ``gpg -d``; gpg handles the
    passphrase prompt (or agent) itself.
    """
    path = Path(path)
    if encrypted:
        try:
            result = subprocess.run(
                ["gpg", "-d", str(path)],
                check=True,
                capture_output=True,
            )
        except FileNotFoundError as exc:
            raise CredentialsError("gpg executable not found; cannot decrypt credentials") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode(errors="replace").strip()
            raise CredentialsError(f"couldn't decrypt the credentials file {path}: {stderr}") from exc
        log.debug("credentials.decrypted", path=str(path))
        return result.stdout

    try:
        return path.read_bytes()
    except OSError as exc:
        raise CredentialsError(f"couldn't read the credentials file {path}: {exc}") from exc


def parse_credentials(raw: bytes | str) -> list[Credential]:
    """Parse a JSON array of ``{"username", "token"}`` objects."""
    try:
        return _CREDENTIALS_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise CredentialsError(f"couldn't parse JSON credentials: {exc}") from exc


def load_credentials(path: str | Path, *, encrypted: bool = False) -> list[Credential]:
    """Read (and optionally decrypt) then parse a credentials file."""
    credentials = parse_credentials(read_credentials_file(path, encrypted=encrypted))
    log.info("credentials.loaded", path=str(path), count=len(credentials), encrypted=encrypted)
    return credentials
