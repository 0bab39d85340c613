"""
Reconciliation of source directories against the link tree.

An OrganizerLayer owns one LinkRule. A full pass scans every directory of
the rule, decides for each admitted file whether its destination should
point at it, records the decision in the shared LinkRegistry and then
materializes the changed destinations through the LinkApplier.

Batches are awaited with asyncio.gather: the first failing task raises out
of the pass, siblings that already ran keep their side effects.
"""

import asyncio
import os
import re
from typing import Any, Dict, List, Optional

from .errors import RegistryInvariantViolation, ScanError, UnlinkOnDeleteError
from .formatter import PathFormatter
from .generator import LinkApplier
from .library import file_extension, is_allowed_file, list_files
from .logging_config import get_logger
from .models import LinkRule
from .parser import MediaParser
from .registry import LinkRegistry

logger = get_logger("organizer")

DISABLED = "disabled"
COMPLETED = "completed"

_NON_DIGITS = re.compile(r"\D")


def quality_value(quality: Any) -> Optional[int]:
    """Integer form of a quality field, or None when it has none."""
    if isinstance(quality, str):
        digits = _NON_DIGITS.sub("", quality)
        return int(digits) if digits else None
    if isinstance(quality, bool):
        return None
    if isinstance(quality, int):
        return quality
    if isinstance(quality, float) and quality.is_integer():
        return int(quality)
    return None


class OrganizerLayer:
    def __init__(
        self,
        rule: LinkRule,
        index: int,
        registry: LinkRegistry,
        parser: Optional[MediaParser] = None,
        formatter: Optional[PathFormatter] = None,
        applier: Optional[LinkApplier] = None,
    ):
        self.rule = rule
        self.index = index
        self.registry = registry
        self.parser = parser or MediaParser()
        self.formatter = formatter or PathFormatter()
        self.applier = applier or LinkApplier()

    @property
    def label(self) -> str:
        return f"{self.rule.name} (#{self.index})"

    async def on_file_created(self, path: str, stats: Optional[os.stat_result] = None) -> Dict[str, Any]:
        logger.info("File created: %s", path)
        return await self.organize_directory()

    async def on_file_deleted(self, path: str) -> bool:
        logger.info("File deleted: %s", path)

        record = self.registry.find_by_origin(path)
        if record is None:
            return False

        logger.info("Removing link %s -> %s", record.destination_path, record.origin_path)
        try:
            await self.applier.remove(record.destination_path)
        except UnlinkOnDeleteError as e:
            logger.error("%s; keeping registry record", e)
            return False

        self.registry.remove(record.destination_path)
        return True

    async def on_directory_deleted(self, path: str) -> int:
        """Drop the links of every tracked origin below a removed directory."""
        logger.info("Directory deleted: %s", path)
        origins = dict.fromkeys(r.origin_path for r in self.registry.find_under(path))
        removed = 0
        for origin in origins:
            if await self.on_file_deleted(origin):
                removed += 1
        return removed

    def should_link(self, origin_path: str, destination_path: str, metadata: Dict[str, Any]) -> bool:
        existing = self.registry.find(destination_path)
        if existing is None:
            logger.debug("No link at %s yet", destination_path)
            return True

        if existing.origin_path == origin_path:
            return False

        if not self.rule.use_highest_quality or "quality" not in metadata:
            return False

        new_q = quality_value(metadata["quality"])
        if "quality" not in existing.metadata:
            return new_q is not None

        old_q = quality_value(existing.metadata["quality"])
        if new_q is not None and old_q is not None and new_q > old_q:
            logger.info(
                "Better quality for %s: %s (%s) replaces %s (%s)",
                destination_path, origin_path, new_q, existing.origin_path, old_q,
            )
            return True
        return False

    async def organize_directory(self) -> Dict[str, Any]:
        directories = self.rule.directories
        logger.info("Running rule %s (%d directories)", self.label, len(directories))

        if not self.rule.enabled:
            logger.warning("Rule %s is disabled, skipping %d directories", self.label, len(directories))
            return {"rule": self.rule.name, "index": self.index, "status": DISABLED, "directories": []}

        results = await asyncio.gather(*(self._organize_root(os.path.abspath(d)) for d in directories))

        logger.info("Rule %s completed (%d directories)", self.label, len(directories))
        return {"rule": self.rule.name, "index": self.index, "status": COMPLETED, "directories": list(results)}

    async def _organize_root(self, scan_dir: str) -> Dict[str, Any]:
        try:
            files = await list_files(scan_dir)
        except ScanError as e:
            logger.warning("Scan of %s for rule %s failed: %s", scan_dir, self.label, e.reason)
            raise
        queued = await self.parse_file_tree(scan_dir, files)
        # one apply per destination; the registry holds the winning origin
        destinations = list(dict.fromkeys(d for d in queued if d))
        linked = await self.create_links(scan_dir, destinations)
        return {"directory": scan_dir, "files": len(files), "linked": linked}

    async def parse_file_tree(self, scan_dir: str, files: List[str]) -> List[Optional[str]]:
        logger.info("Organizing %s...", scan_dir)
        results = await asyncio.gather(*(self._parse_file(f) for f in files))
        logger.info("Parsed tree for %s (%d files)", scan_dir, len(results))
        return list(results)

    async def _parse_file(self, path: str) -> Optional[str]:
        if not await is_allowed_file(path, self.rule):
            return None

        media_type = await self.parser.classify_type(path)
        if self.rule.strict_type and media_type != self.rule.strict_type:
            logger.debug("Wrong media type for %s: %s", path, media_type)
            return None

        metadata = await self.parser.extract_metadata(path, media_type)
        destination = self.formatter.destination(
            self.rule.target_path, self.rule.target_format, metadata, file_extension(path)
        )

        # no await between the decision and the upsert
        if self.should_link(path, destination, metadata):
            self.registry.upsert(destination, path, metadata)
            return destination
        return None

    async def create_links(self, scan_dir: str, destinations: List[str]) -> int:
        results = await asyncio.gather(*(self._create_link(d) for d in destinations))
        linked = sum(1 for ok in results if ok)
        logger.info("Organized %s (%d link(s) created)", scan_dir, linked)
        return linked

    async def _create_link(self, destination: str) -> bool:
        record = self.registry.find(destination)
        if record is None:
            logger.error("Queued link %s is missing from the registry", destination)
            raise RegistryInvariantViolation(destination)
        return await self.applier.apply(record.origin_path, record.destination_path)


class Organizer:
    """Owns the link registry and one OrganizerLayer per configured rule."""

    def __init__(
        self,
        rules: List[LinkRule],
        registry: Optional[LinkRegistry] = None,
        parser: Optional[MediaParser] = None,
        formatter: Optional[PathFormatter] = None,
        applier: Optional[LinkApplier] = None,
    ):
        self.registry = registry or LinkRegistry()
        parser = parser or MediaParser()
        formatter = formatter or PathFormatter()
        applier = applier or LinkApplier()
        self.layers = [
            OrganizerLayer(rule, i, self.registry, parser=parser, formatter=formatter, applier=applier)
            for i, rule in enumerate(rules)
        ]

    async def organize_all(self) -> List[Dict[str, Any]]:
        results = await asyncio.gather(*(layer.organize_directory() for layer in self.layers))
        return list(results)
