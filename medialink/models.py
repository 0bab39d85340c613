from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MOVIE = "movie"
SERIES = "series"
MEDIA_TYPES = (MOVIE, SERIES)


@dataclass(frozen=True)
class LinkRule:
    name: str
    directories: List[str]
    target_path: str
    target_format: str
    allowed_extensions: List[str] = field(default_factory=list)
    ignored_extensions: List[str] = field(default_factory=list)
    allowed_size: List[float] = field(default_factory=list)
    strict_type: Optional[str] = None
    use_highest_quality: bool = False
    enabled: bool = True


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    watch: bool = True
    use_polling: bool = False
    run_on_startup: bool = True
    rescan_cron: str = "30 3 * * *"


@dataclass(frozen=True)
class AppConfig:
    settings: Settings
    rules: List[LinkRule]


@dataclass
class LinkRecord:
    destination_path: str
    origin_path: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination_path": self.destination_path,
            "origin_path": self.origin_path,
            "metadata": dict(self.metadata),
        }
