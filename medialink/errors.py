"""
Error types raised by the link engine.

Everything derives from MediaLinkError so callers at the process edge
can catch one type.
"""


class MediaLinkError(Exception):
    """Base exception for medialink failures."""
    pass


class ConfigError(MediaLinkError):
    """Raised when the configuration file is missing fields or malformed."""
    pass


class ScanError(MediaLinkError):
    """Raised when a directory in a scanned subtree cannot be read."""

    def __init__(self, directory: str, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"Failed to scan {directory}: {reason}")


class RegistryInvariantViolation(MediaLinkError):
    """Raised when a destination queued for linking has no registry record."""

    def __init__(self, destination_path: str):
        self.destination_path = destination_path
        super().__init__(f"No registry record for queued link {destination_path}")


class FilesystemApplyError(MediaLinkError):
    """Describes a failed symlink write. Logged by the applier, never raised to callers."""

    def __init__(self, origin_path: str, destination_path: str, reason: str):
        self.origin_path = origin_path
        self.destination_path = destination_path
        self.reason = reason
        super().__init__(f"Failed to link {destination_path} -> {origin_path}: {reason}")


class UnlinkOnDeleteError(MediaLinkError):
    """Raised when the link of a deleted origin file cannot be removed."""

    def __init__(self, destination_path: str, reason: str):
        self.destination_path = destination_path
        self.reason = reason
        super().__init__(f"Failed to unlink {destination_path}: {reason}")


class TemplateFormatError(MediaLinkError):
    """Raised when a target format cannot be rendered."""

    def __init__(self, template: str, reason: str):
        self.template = template
        self.reason = reason
        super().__init__(f"Cannot render target format {template!r}: {reason}")
