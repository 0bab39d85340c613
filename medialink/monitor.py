"""
Filesystem watching for rule source directories using watchdog.

watchdog delivers events on its observer thread. Handlers never touch the
organizer from there: each event becomes a coroutine submitted to the event
loop that owns the registry.
"""

import asyncio
from concurrent.futures import Future
from typing import Callable, Coroutine, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .logging_config import get_logger
from .organizer import Organizer, OrganizerLayer

logger = get_logger("monitor")

Submit = Callable[[Coroutine], object]


def _log_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Watcher task failed: %s", exc, exc_info=exc)


def loop_submitter(loop: asyncio.AbstractEventLoop) -> Submit:
    def submit(coro: Coroutine) -> Future:
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        future.add_done_callback(_log_failure)
        return future

    return submit


class LayerEventHandler(FileSystemEventHandler):
    """Forward file and directory events under a rule's directories to its layer."""

    def __init__(self, layer: OrganizerLayer, submit: Submit):
        super().__init__()
        self.layer = layer
        self.submit = submit

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self.submit(self.layer.on_file_created(event.src_path))

    def on_deleted(self, event: FileSystemEvent):
        if event.is_directory:
            self.submit(self.layer.on_directory_deleted(event.src_path))
        else:
            self.submit(self.layer.on_file_deleted(event.src_path))

    def on_moved(self, event: FileSystemEvent):
        self.submit(self._moved(event.src_path, event.dest_path, event.is_directory))

    async def _moved(self, src_path: str, dest_path: str, is_directory: bool) -> None:
        if is_directory:
            await self.layer.on_directory_deleted(src_path)
        else:
            await self.layer.on_file_deleted(src_path)
        await self.layer.on_file_created(dest_path)


def start_watching(organizer: Organizer, submit: Submit, use_polling: bool = False):
    """Schedule every directory of every enabled rule and start the observer."""
    observer = PollingObserver() if use_polling else Observer()
    watched: List[str] = []
    for layer in organizer.layers:
        if not layer.rule.enabled:
            continue
        handler = LayerEventHandler(layer, submit)
        for directory in layer.rule.directories:
            observer.schedule(handler, directory, recursive=True)
            watched.append(directory)
    observer.start()
    logger.info("Watching %d directories", len(watched))
    return observer


def stop_watching(observer: Optional[Observer]) -> None:
    if observer is None:
        return
    observer.stop()
    observer.join()
