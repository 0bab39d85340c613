"""Tests for the watchdog bridge."""

import asyncio
import os

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileMovedEvent,
)

from conftest import CountingApplier, FakeParser, write_file
from medialink.monitor import LayerEventHandler, loop_submitter, start_watching, stop_watching
from medialink.organizer import Organizer, OrganizerLayer
from medialink.registry import LinkRegistry


class RecordingLayer:
    def __init__(self):
        self.calls = []

    async def on_file_created(self, path, stats=None):
        self.calls.append(("created", path))

    async def on_file_deleted(self, path):
        self.calls.append(("deleted", path))
        return False

    async def on_directory_deleted(self, path):
        self.calls.append(("dir-deleted", path))
        return 0


def _handler():
    layer = RecordingLayer()
    submitted = []
    return layer, submitted, LayerEventHandler(layer, submitted.append)


def _drain(submitted):
    async def run():
        for coro in submitted:
            await coro

    asyncio.run(run())


def test_file_events_are_forwarded():
    layer, submitted, handler = _handler()

    handler.on_created(FileCreatedEvent("/src/a.mkv"))
    handler.on_deleted(FileDeletedEvent("/src/b.mkv"))
    _drain(submitted)

    assert layer.calls == [("created", "/src/a.mkv"), ("deleted", "/src/b.mkv")]


def test_move_is_delete_then_create():
    layer, submitted, handler = _handler()

    handler.on_moved(FileMovedEvent("/src/old.mkv", "/src/new.mkv"))
    _drain(submitted)

    assert layer.calls == [("deleted", "/src/old.mkv"), ("created", "/src/new.mkv")]


def test_directory_creation_is_ignored():
    layer, submitted, handler = _handler()

    handler.on_created(DirCreatedEvent("/src/season 1"))

    assert submitted == []


def test_loop_submitter_runs_on_the_loop():
    layer = RecordingLayer()

    async def main():
        submit = loop_submitter(asyncio.get_running_loop())
        future = await asyncio.to_thread(submit, layer.on_file_created("/src/a.mkv"))
        await asyncio.wrap_future(future)

    asyncio.run(main())

    assert layer.calls == [("created", "/src/a.mkv")]


def test_start_watching_skips_disabled_rules(tmp_path, make_rule):
    (tmp_path / "on").mkdir()
    (tmp_path / "off").mkdir()
    organizer = Organizer(
        [
            make_rule(directories=[str(tmp_path / "on")]),
            make_rule(directories=[str(tmp_path / "off")], enabled=False),
        ],
        parser=FakeParser(),
    )

    observer = start_watching(organizer, lambda coro: coro.close(), use_polling=True)
    try:
        assert observer.is_alive()
        assert [e.watch.path for e in observer.emitters] == [str(tmp_path / "on")]
    finally:
        stop_watching(observer)

    assert not observer.is_alive()


def test_directory_delete_and_move_are_forwarded():
    layer, submitted, handler = _handler()

    handler.on_deleted(DirDeletedEvent("/src/show"))
    handler.on_moved(DirMovedEvent("/src/old", "/src/new"))
    _drain(submitted)

    assert layer.calls == [
        ("dir-deleted", "/src/show"),
        ("dir-deleted", "/src/old"),
        ("created", "/src/new"),
    ]


def test_deleted_directory_drops_links_below_it(source_dir, target_dir, make_rule):
    write_file(source_dir / "show" / "a.mkv")
    write_file(source_dir / "show" / "b.mkv")
    keep = write_file(source_dir / "other" / "c.mkv")
    layer = OrganizerLayer(
        make_rule(target_format="{{ title }}.{{ extension }}"),
        0,
        LinkRegistry(),
        parser=FakeParser(
            {
                "a.mkv": ("series", {"title": "a"}),
                "b.mkv": ("series", {"title": "b"}),
                "c.mkv": ("series", {"title": "c"}),
            }
        ),
        applier=CountingApplier(),
    )
    asyncio.run(layer.organize_directory())
    assert len(layer.registry) == 3

    submitted = []
    handler = LayerEventHandler(layer, submitted.append)
    handler.on_deleted(DirDeletedEvent(str(source_dir / "show")))
    _drain(submitted)

    assert [r.origin_path for r in layer.registry] == [str(keep)]
    assert not os.path.lexists(target_dir / "a.mkv")
    assert not os.path.lexists(target_dir / "b.mkv")
    assert os.path.islink(target_dir / "c.mkv")
