"""
Vault Archive: Encrypted export and import of a whole vault.

Archive layout (JSON):
    {
      "format": "falconpass-export",
      "version": "1.0.0",
      "timestamp": "<ISO-8601 UTC>",
      "kdf": {"version": 1, "iterations": 3, "memoryKiB": 65536, ...},
      "entries": [{"id", "encryptedData", "metadata", "createdAt", "updatedAt"}, ...]
    }

Every ``encryptedData`` blob is a regular envelope, so an archive is only
readable with the master password (and salt) it was exported under.
The format tag is checked before any entry is touched.
"""
import logging
from typing import Any, Optional, Union
from datetime import datetime
from collections.abc import Iterable

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import MalformedEnvelopeError, UnsupportedFormatError
from ..models import EncryptedVaultEntry, VaultEntry, new_entry_id, utcnow
from .config import KDF_PARAMETERS, KdfParameters
from .session_vault import VaultSession

logger = logging.getLogger("falconpass.vault")

EXPORT_FORMAT = "falconpass-export"
EXPORT_VERSION = "1.0.0"


class ExportArchive(BaseModel):
    """Top-level export document.

    ``entries`` holds the raw entry records. They are validated one by one
    on import so a single damaged record cannot sink the whole archive.
    """

    model_config = ConfigDict(populate_by_name=True)

    format: str = EXPORT_FORMAT
    version: str = EXPORT_VERSION
    timestamp: datetime = Field(default_factory=utcnow)
    kdf: Optional[KdfParameters] = None
    entries: list[Any] = Field(default_factory=list)


def export_vault(vault: VaultSession, entries: Iterable[VaultEntry]) -> str:
    """Encrypt entries and build an export archive.

    Args:
        vault: Unlocked session whose key seals the entries.
        entries: Plaintext entries to export.

    Returns:
        Indented JSON text of the archive.
    """
    archive = ExportArchive(
        kdf=vault.config.kdf_parameters,
        entries=[
            vault.encrypt_entry(entry).model_dump(mode="json", by_alias=True)
            for entry in entries
        ],
    )
    logger.info("Vault exported: %d entries", len(archive.entries))
    return orjson.dumps(
        archive.model_dump(mode="json", by_alias=True),
        option=orjson.OPT_INDENT_2,
    ).decode("utf-8")


def parse_archive(data: Union[str, bytes]) -> ExportArchive:
    """Parse and validate an export archive without decrypting anything.

    Only the top-level fields are checked here; entry records are left
    as parsed JSON for :func:`import_vault`.

    Raises:
        UnsupportedFormatError: If the data is not a JSON object tagged
            ``falconpass-export`` or names unknown KDF parameters.
        MalformedEnvelopeError: If the top-level fields are invalid or
            ``entries`` is not a list.
    """
    try:
        raw = orjson.loads(data)
    except orjson.JSONDecodeError:
        raise UnsupportedFormatError("Export archive is not valid JSON") from None
    if not isinstance(raw, dict):
        raise UnsupportedFormatError("Export archive must be a JSON object")
    fmt = raw.get("format")
    if fmt != EXPORT_FORMAT:
        raise UnsupportedFormatError(f"Unsupported export format: {fmt!r}")
    kdf = raw.get("kdf")
    if isinstance(kdf, dict):
        version = kdf.get("version")
        known = KDF_PARAMETERS.get(version) if isinstance(version, int) else None
        if known is None or known != _parse_kdf(kdf):
            raise UnsupportedFormatError(
                f"Unsupported key derivation parameters: v{version}"
            )
    if not isinstance(raw.get("entries", []), list):
        raise MalformedEnvelopeError("Export archive entries must be a list")
    try:
        return ExportArchive.model_validate(raw)
    except ValidationError as err:
        raise MalformedEnvelopeError(
            f"Export archive is malformed ({err.error_count()} error(s))"
        ) from None


def _parse_kdf(kdf: dict) -> Optional[KdfParameters]:
    try:
        return KdfParameters.model_validate(kdf)
    except ValidationError:
        return None


def _parse_entry(
    index: int,
    item: Any,
) -> Union[EncryptedVaultEntry, VaultEntry]:
    """Validate one archive record, or return a placeholder for it."""
    try:
        return EncryptedVaultEntry.model_validate(item)
    except ValidationError:
        raw_id = item.get("id") if isinstance(item, dict) else None
        entry_id = raw_id if isinstance(raw_id, str) else None
        logger.warning(
            "Malformed import entry at index %d: id=%s", index, entry_id or "unknown",
        )
        return VaultEntry.placeholder(id=entry_id)


def import_vault(vault: VaultSession, data: Union[str, bytes]) -> list[VaultEntry]:
    """Decrypt every entry of an export archive.

    Entries that are malformed or fail to decrypt come back as
    placeholders in their original position; one bad entry never aborts
    the import.

    Raises:
        UnsupportedFormatError: See :func:`parse_archive`.
        MalformedEnvelopeError: See :func:`parse_archive`.
    """
    archive = parse_archive(data)
    logger.info(
        "Importing vault archive v%s: %d entries", archive.version, len(archive.entries),
    )
    records = [_parse_entry(i, item) for i, item in enumerate(archive.entries)]
    decrypted = iter(vault.decrypt_entries(
        [r for r in records if isinstance(r, EncryptedVaultEntry)]
    ))
    return [
        next(decrypted) if isinstance(r, EncryptedVaultEntry) else r
        for r in records
    ]


def reseal_imported(
    vault: VaultSession,
    entries: Iterable[VaultEntry],
) -> list[EncryptedVaultEntry]:
    """Prepare imported entries for storage as new records.

    Each entry gets a new id and timestamps and is sealed under ``vault``.
    Placeholders are skipped since they carry no secret to store.
    """
    result = []
    for entry in entries:
        if entry.is_placeholder:
            logger.debug("Skipping undecryptable import entry: id=%s", entry.id)
            continue
        now = utcnow()
        fresh = entry.model_copy(update={
            "id": new_entry_id(),
            "created_at": now,
            "updated_at": now,
        })
        result.append(vault.encrypt_entry(fresh))
    return result
