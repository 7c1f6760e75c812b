"""
File-backed store for the single credential record.

The store holds at most one record. ``put`` upserts it: the first call
creates the record, later calls replace its token while keeping the
record identity.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os

from ..models import Credential
from ..exceptions import PersistenceError, CredentialMissingError
from ..utils import get_logger, mask_token


class CredentialStore:
    """
    Durable singleton credential record in the per-installation data directory.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the credential store.

        Args:
            path: Store file location, usually ``Config.credential_path``
        """
        self.path = Path(path)
        self.logger = get_logger(__name__)

    async def exists(self) -> bool:
        """Check whether a credential record is stored."""
        try:
            await self.get()
        except CredentialMissingError:
            return False
        return True

    async def get(self) -> Credential:
        """
        Read the singleton credential record.

        Returns:
            Credential: The stored credential

        Raises:
            CredentialMissingError: If no record (or an empty token) is stored
            PersistenceError: If the store cannot be read or decoded
        """
        document = await self._read_document()
        if document is None or not document.get("token"):
            raise CredentialMissingError()

        if not isinstance(document["token"], str):
            raise PersistenceError(f"Malformed credential record in {self.path}", "token must be a string")

        # Records written without an _id get a fresh identity on load
        return Credential.from_dict(document)

    async def put(self, token: str) -> Credential:
        """
        Create or replace the credential record.

        Args:
            token: The new secret value

        Returns:
            Credential: The stored record

        Raises:
            PersistenceError: If the store cannot be read or written
        """
        if not isinstance(token, str):
            raise PersistenceError("Credential token must be a string", type(token).__name__)

        document = await self._read_document()
        if document is not None and document.get("_id"):
            credential = Credential(token=token, record_id=document["_id"])
            action = "Updated"
        else:
            credential = Credential(token=token)
            action = "Created"

        await self._write_document(credential.to_dict())
        self.logger.info(f"{action} credential record {credential.record_id} ({mask_token(token)})")
        return credential

    async def _read_document(self) -> Optional[dict]:
        try:
            if not await aiofiles.os.path.exists(self.path):
                return None

            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                content = await f.read()
        except OSError as e:
            raise PersistenceError(f"Failed to read credential store {self.path}", str(e))

        if not content.strip():
            return None

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt credential store {self.path}", str(e))

        if not isinstance(document, dict):
            raise PersistenceError(f"Corrupt credential store {self.path}", "expected a JSON object")

        return document

    async def _write_document(self, document: dict) -> None:
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)

            async with aiofiles.open(temp_path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps(document))
                await f.flush()
                os.fsync(f.fileno())

            await aiofiles.os.replace(temp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to write credential store {self.path}", str(e))
