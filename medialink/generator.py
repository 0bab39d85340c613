import os

import aiofiles.os

from .errors import FilesystemApplyError, UnlinkOnDeleteError
from .logging_config import get_logger

logger = get_logger("generator")


class LinkApplier:
    """Writes and removes the symlinks that mirror the registry."""

    async def apply(self, origin_path: str, destination_path: str) -> bool:
        try:
            await aiofiles.os.makedirs(os.path.dirname(destination_path), exist_ok=True)
        except OSError as e:
            logger.error("%s", FilesystemApplyError(origin_path, destination_path, f"cannot create parent: {e}"))
            return False

        try:
            await aiofiles.os.unlink(destination_path)
        except OSError:
            pass

        try:
            await aiofiles.os.symlink(origin_path, destination_path)
        except OSError as e:
            logger.error("%s", FilesystemApplyError(origin_path, destination_path, str(e)))
            return False

        logger.info("Linked %s -> %s", destination_path, origin_path)
        return True

    async def remove(self, destination_path: str) -> None:
        try:
            await aiofiles.os.unlink(destination_path)
        except OSError as e:
            raise UnlinkOnDeleteError(destination_path, str(e)) from e
        logger.info("Removed link %s", destination_path)
