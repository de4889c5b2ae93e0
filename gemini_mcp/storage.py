"""Local artifact writer for generated media and JSON sidecars.

Writes are best effort: each attempt yields a ``WriteOutcome`` and a failure
is logged and reported, never raised.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}

_UNSAFE_TAG_CHARS = re.compile(r"[^A-Za-z0-9-]+")


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def extension_for(mime_type: Optional[str], default: str = "png") -> str:
    if not mime_type:
        return default
    return MIME_EXTENSIONS.get(mime_type.lower(), default)


def sanitize_tag(tag: str) -> str:
    """Reduce a free-form tag such as a style name to a filename-safe token."""
    return _UNSAFE_TAG_CHARS.sub("_", tag.strip()).strip("_")


def media_filename(prefix: str, tag: Optional[str], timestamp: str, index: int, extension: str) -> str:
    """``<prefix>_<tag>_<timestamp>_<index>.<ext>``, without the tag when it is empty."""
    parts = [prefix]
    safe_tag = sanitize_tag(tag) if tag else ""
    if safe_tag:
        parts.append(safe_tag)
    parts.extend([timestamp, str(index)])
    return f"{'_'.join(parts)}.{extension}"


def metadata_filename(family: str, timestamp: str) -> str:
    return f"{family}_metadata_{timestamp}.json"


@dataclass
class WriteOutcome:
    """Result of a single file write."""
    path: Path
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ArtifactWriter:
    """Writes the files of one tool call into ``directory``.

    The writer numbers media payloads with a running index so two payloads
    from the same call never share a name.
    """
    directory: Path
    timestamp: str
    outcomes: List[WriteOutcome] = field(default_factory=list)
    _next_index: int = field(default=0, init=False, repr=False)

    @classmethod
    def for_call(
        cls,
        requested_dir: Optional[Union[str, Path]],
        default_dir: Path,
        timestamp: str,
    ) -> "ArtifactWriter":
        directory = Path(requested_dir).expanduser() if requested_dir else Path(default_dir)
        return cls(directory=directory, timestamp=timestamp)

    @property
    def saved_files(self) -> List[str]:
        return [str(o.path) for o in self.outcomes if o.ok]

    @property
    def errors(self) -> List[str]:
        return [f"{o.path}: {o.error}" for o in self.outcomes if not o.ok]

    def write_media(self, prefix: str, tag: Optional[str], data: bytes, extension: str) -> WriteOutcome:
        """Save one binary payload under the next sequence index."""
        index = self._next_index
        self._next_index += 1
        path = self.directory / media_filename(prefix, tag, self.timestamp, index, extension)
        return self._write(path, data)

    def write_metadata(self, family: str, record: Dict[str, Any]) -> WriteOutcome:
        """Save ``record`` as indented JSON next to the media files."""
        path = self.directory / metadata_filename(family, self.timestamp)
        try:
            payload = json.dumps(record, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            return self._record(WriteOutcome(path=path, error=f"could not serialize metadata: {e}"))
        return self._write(path, payload.encode("utf-8"))

    def _write(self, path: Path, data: bytes) -> WriteOutcome:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._record(WriteOutcome(path=path, error=str(e)))
        try:
            # never overwrite the output of another call in the same second
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError:
            return self._record(WriteOutcome(path=path, error="file already exists"))
        except OSError as e:
            return self._record(WriteOutcome(path=path, error=str(e)))
        logger.info("Saved %s", path)
        return self._record(WriteOutcome(path=path))

    def _record(self, outcome: WriteOutcome) -> WriteOutcome:
        if not outcome.ok:
            logger.warning("Could not write %s: %s", outcome.path, outcome.error)
        self.outcomes.append(outcome)
        return outcome
