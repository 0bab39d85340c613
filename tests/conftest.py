"""Shared pytest fixtures."""

import os
from pathlib import Path

import pytest

from medialink.generator import LinkApplier
from medialink.models import LinkRule
from medialink.organizer import OrganizerLayer
from medialink.registry import LinkRegistry


class FakeParser:
    """Classifier returning canned results keyed by file name."""

    def __init__(self, entries=None):
        self.entries = dict(entries or {})

    async def classify_type(self, path):
        entry = self.entries.get(os.path.basename(path))
        return entry[0] if entry else None

    async def extract_metadata(self, path, media_type):
        entry = self.entries.get(os.path.basename(path))
        return dict(entry[1]) if entry else {}


class CountingApplier(LinkApplier):
    def __init__(self):
        self.applied = []
        self.removed = []

    async def apply(self, origin_path, destination_path):
        self.applied.append((origin_path, destination_path))
        return await super().apply(origin_path, destination_path)

    async def remove(self, destination_path):
        self.removed.append(destination_path)
        await super().remove(destination_path)


def write_file(path: Path, size: int = 16) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


@pytest.fixture
def source_dir(tmp_path):
    d = tmp_path / "downloads"
    d.mkdir()
    return d


@pytest.fixture
def target_dir(tmp_path):
    return tmp_path / "media"


@pytest.fixture
def make_rule(source_dir, target_dir):
    def _make(**overrides):
        values = {
            "name": "test",
            "directories": [str(source_dir)],
            "target_path": str(target_dir),
            "target_format": "{{ title }}/{{ title }} - S{{ season }}E{{ episode }}.{{ extension }}",
        }
        values.update(overrides)
        return LinkRule(**values)

    return _make


@pytest.fixture
def make_layer():
    def _make(rule, entries=None, registry=None, applier=None):
        return OrganizerLayer(
            rule,
            0,
            registry if registry is not None else LinkRegistry(),
            parser=FakeParser(entries),
            applier=applier or CountingApplier(),
        )

    return _make
