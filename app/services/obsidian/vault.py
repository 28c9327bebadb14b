"""Obsidian vault backends.

Paths passed to a vault are vault-relative and use "/" separators
(e.g. "Jira/Completed/PROJ-12.md"). Two backends are available:

- DropboxVault: the vault is synced through Dropbox (default)
- LocalVault: the vault is a directory on this machine
"""

import logging
import os
import re
from pathlib import Path
from typing import Protocol

import dropbox
import requests

from config import redis_client

logger = logging.getLogger(__name__)

NOTE_EXTENSION = ".md"


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and strip leading/trailing slashes."""
    path = path.replace("\\", "/")
    path = re.sub(r"/+", "/", path)
    return path.strip("/")


def join_path(*parts: str) -> str:
    return normalize_path("/".join(part for part in parts if part))


class Vault(Protocol):
    def ensure_folder(self, path: str) -> bool: ...

    def read_note(self, path: str) -> str | None: ...

    def write_note(self, path: str, content: str) -> None: ...

    def list_notes(self, folder: str) -> list[str]: ...

    def move_note(self, from_path: str, to_path: str) -> None: ...


# =============================================================================
# Local file system
# =============================================================================


class LocalVault:
    """Vault stored in a local directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def ensure_folder(self, path: str) -> bool:
        """Create a folder if missing. Returns True if it was created."""
        folder = self._resolve(path)
        if folder.is_dir():
            return False
        folder.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created folder: {path}")
        return True

    def read_note(self, path: str) -> str | None:
        note = self._resolve(path)
        if not note.is_file():
            return None
        return note.read_text(encoding="utf-8")

    def write_note(self, path: str, content: str) -> None:
        note = self._resolve(path)
        note.parent.mkdir(parents=True, exist_ok=True)
        note.write_text(content, encoding="utf-8")

    def list_notes(self, folder: str) -> list[str]:
        """List markdown notes under a folder, recursively."""
        base = self._resolve(folder)
        if not base.is_dir():
            return []
        return sorted(
            normalize_path(note.relative_to(self.root).as_posix())
            for note in base.rglob(f"*{NOTE_EXTENSION}")
            if note.is_file()
        )

    def move_note(self, from_path: str, to_path: str) -> None:
        source = self._resolve(from_path)
        target = self._resolve(to_path)
        if target.exists():
            raise FileExistsError(f"Cannot move {from_path}: {to_path} already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)
        logger.info(f"Moved note: {from_path} -> {to_path}")


# =============================================================================
# Dropbox
# =============================================================================


def _refresh_access_token() -> str:
    """Refresh the Dropbox access token using the refresh token."""
    client_id = os.getenv('DROPBOX_ACCESS_KEY')
    client_secret = os.getenv('DROPBOX_ACCESS_SECRET')
    refresh_token = os.getenv('DROPBOX_REFRESH_TOKEN')

    if not all([client_id, client_secret, refresh_token]):
        raise EnvironmentError("Missing Dropbox credentials in .env file")

    response = requests.post(
        'https://api.dropbox.com/oauth2/token',
        data={
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
            'client_id': client_id,
            'client_secret': client_secret
        },
        timeout=30,
    )

    if response.status_code == 200:
        data = response.json()
        access_token = data.get('access_token')
        expires_in = data.get('expires_in')
        redis_client.set('DROPBOX_ACCESS_TOKEN', access_token, ex=expires_in)
        return access_token
    else:
        raise EnvironmentError(f"Failed to refresh token: {response.status_code}")


def get_dropbox_client() -> dropbox.Dropbox:
    """Get authenticated Dropbox client."""
    access_token = redis_client.get('DROPBOX_ACCESS_TOKEN')
    if not access_token:
        access_token = _refresh_access_token()
    return dropbox.Dropbox(access_token)


class DropboxVault:
    """Vault stored in Dropbox under ``vault_path``."""

    def __init__(self, dbx: dropbox.Dropbox, vault_path: str):
        self.dbx = dbx
        self.vault_path = "/" + normalize_path(vault_path)

    def _absolute(self, path: str) -> str:
        return f"{self.vault_path.rstrip('/')}/{normalize_path(path)}"

    def _relative(self, absolute_path: str) -> str:
        prefix = self.vault_path.rstrip("/").lower() + "/"
        if absolute_path.lower().startswith(prefix):
            return normalize_path(absolute_path[len(prefix):])
        return normalize_path(absolute_path)

    def ensure_folder(self, path: str) -> bool:
        """Create a folder in Dropbox if it doesn't exist.

        Returns True if folder was created, False if it already existed.
        """
        try:
            self.dbx.files_create_folder_v2(self._absolute(path))
            logger.debug(f"Created folder: {path}")
            return True
        except dropbox.exceptions.ApiError as e:
            if isinstance(e.error, dropbox.files.CreateFolderError):
                if e.error.is_path() and e.error.get_path().is_conflict():
                    return False
            raise

    def read_note(self, path: str) -> str | None:
        """Download file content as string. Returns None if not found."""
        try:
            _, response = self.dbx.files_download(self._absolute(path))
            return response.content.decode('utf-8')
        except dropbox.exceptions.ApiError as e:
            if isinstance(e.error, dropbox.files.DownloadError):
                return None
            raise

    def write_note(self, path: str, content: str) -> None:
        """Upload file content to Dropbox, overwriting if exists."""
        self.dbx.files_upload(
            content.encode('utf-8'),
            self._absolute(path),
            mode=dropbox.files.WriteMode.overwrite
        )

    def list_notes(self, folder: str) -> list[str]:
        """List markdown notes under a folder, recursively, with pagination."""
        try:
            result = self.dbx.files_list_folder(self._absolute(folder), recursive=True)
        except dropbox.exceptions.ApiError as e:
            if isinstance(e.error, dropbox.files.ListFolderError):
                return []
            raise

        notes = []
        while True:
            for entry in result.entries:
                if isinstance(entry, dropbox.files.FileMetadata) and entry.name.endswith(NOTE_EXTENSION):
                    notes.append(self._relative(entry.path_display))

            if not result.has_more:
                break
            result = self.dbx.files_list_folder_continue(result.cursor)

        return sorted(notes)

    def move_note(self, from_path: str, to_path: str) -> None:
        """Move a file in Dropbox."""
        self.dbx.files_move_v2(self._absolute(from_path), self._absolute(to_path))
        logger.info(f"Moved note: {from_path} -> {to_path}")


def open_vault(backend: str, local_path: str | None = None, dropbox_path: str | None = None) -> Vault:
    """Open the configured vault backend."""
    if backend == "local":
        if not local_path:
            raise EnvironmentError("LOCAL_VAULT_PATH not set")
        return LocalVault(local_path)

    if backend == "dropbox":
        if not dropbox_path:
            raise EnvironmentError("DROPBOX_OBSIDIAN_VAULT_PATH not set")
        return DropboxVault(get_dropbox_client(), dropbox_path)

    raise ValueError(f"Unknown vault backend: {backend}")
