import asyncio
from typing import Any, Dict, Optional

from guessit import guessit

from .models import MOVIE, SERIES

_GUESSIT_TYPES = {"episode": SERIES, "movie": MOVIE}
_TYPE_HINTS = {SERIES: "episode", MOVIE: "movie"}

# guessit key -> metadata key
_FIELDS = {
    "title": "title",
    "year": "year",
    "season": "season",
    "episode": "episode",
    "episode_title": "episode_title",
    "screen_size": "quality",
    "source": "source",
    "release_group": "release_group",
}


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _guess(path: str, media_type: Optional[str] = None) -> Dict[str, Any]:
    options = {}
    if media_type in _TYPE_HINTS:
        options["type"] = _TYPE_HINTS[media_type]
    return dict(guessit(path, options))


class MediaParser:
    """Classifies media files from their paths using guessit."""

    async def classify_type(self, path: str) -> Optional[str]:
        guess = await asyncio.to_thread(_guess, path)
        return _GUESSIT_TYPES.get(guess.get("type"))

    async def extract_metadata(self, path: str, media_type: Optional[str]) -> Dict[str, Any]:
        guess = await asyncio.to_thread(_guess, path, media_type)
        meta: Dict[str, Any] = {}
        for src, dst in _FIELDS.items():
            value = _first(guess.get(src))
            if value is not None:
                meta[dst] = value if isinstance(value, (int, float)) else str(value)
        if media_type:
            meta["type"] = media_type
        return meta
