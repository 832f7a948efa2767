"""Bulk ingestion entry point.

Ingests every supported file of one directory into the collection of one
owner, using the same pipeline as the upload endpoint. Files that fail are
logged and skipped; the exit code is non-zero if any file failed.

Configuration (environment):
    INGEST_SOURCE_DIR   Directory to scan (required).
    INGEST_OWNER_ID     Tenant id the documents belong to.
    INGEST_IS_ADMIN     Store into the shared admin collection (default false).
    INGEST_FOLDER_ID    Optional folder tag for every document.

Usage:
    python -m ingest.ingest_runner
"""

import asyncio
import mimetypes
import os
import sys

from services.ServiceContainer import ServiceContainer
from shared.exceptions.RetrievalErrors import RetrievalError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

# mimetypes does not know every Office type on every platform
_EXTENSION_MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".txt": "text/plain",
}


def guess_media_type(path: str) -> str | None:
    extension = os.path.splitext(path)[1].lower()
    return _EXTENSION_MEDIA_TYPES.get(extension) or mimetypes.guess_type(path)[0]


def collect_files(source_dir: str) -> list[str]:
    """Returns all regular files below source_dir, sorted for a stable run order."""
    paths = []
    for root, _, files in os.walk(source_dir):
        for name in files:
            paths.append(os.path.join(root, name))
    return sorted(paths)


async def ingest_directory(services: ServiceContainer, source_dir: str, owner_id: str | None, is_admin: bool, folder_id: str | None = None) -> tuple[int, int]:
    """Ingest every supported file below source_dir.

    Args:
        services (ServiceContainer): Booted services.
        source_dir (str): Directory to scan.
        owner_id (str | None): Tenant id.
        is_admin (bool): Store into the admin collection.
        folder_id (str | None): Optional folder tag.

    Returns:
        tuple[int, int]: Number of ingested and failed files.
    """
    logging = services.logging
    ingested, failed = 0, 0
    for path in collect_files(source_dir):
        media_type = guess_media_type(path)
        if media_type is None or not services.extractor.is_supported(media_type):
            logging.debug("Skipping unsupported file %s", path)
            continue
        with open(path, "rb") as f:
            buffer = f.read()
        try:
            result = await services.ingestion.ingest(
                buffer=buffer,
                media_type=media_type,
                filename=os.path.basename(path),
                owner_id=owner_id,
                is_admin=is_admin,
                folder_id=folder_id,
            )
        except RetrievalError as exc:
            logging.error("Failed to ingest %s: %s", path, exc.to_detail())
            failed += 1
            continue
        logging.info("Ingested %s as %s (%d chunks)", path, result.document_id, result.chunks_stored)
        ingested += 1
    return ingested, failed


async def main() -> int:
    """Run the one-shot ingestion and return the process exit code."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    source_dir = config.get_string_val("INGEST_SOURCE_DIR")
    is_admin = config.get_bool_val("INGEST_IS_ADMIN", default=False)
    owner_id = config.get_string_val("INGEST_OWNER_ID", default="") or None
    folder_id = config.get_string_val("INGEST_FOLDER_ID", default="") or None

    services = ServiceContainer(helper_config=config)
    try:
        await services.boot()
        ingested, failed = await ingest_directory(services, source_dir, owner_id, is_admin, folder_id)
    finally:
        await services.close()

    logger.info("Ingestion finished: %d ingested, %d failed.", ingested, failed, color="green" if not failed else "yellow")
    return 1 if failed else 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
