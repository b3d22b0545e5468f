"""
Video library backed by a JSON file.

Each finished render is appended as one record:
    artifacts/video_library.json -> {"videos": [LibraryRecord, ...]}
"""

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import List

from core.models.render import LibraryRecord
from core.providers.base import VideoLibrary

logger = logging.getLogger(__name__)


class JsonVideoLibrary(VideoLibrary):
    """Appends render records to a JSON file"""

    def __init__(self, path: str = "artifacts/video_library.json"):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> List[dict]:
        if not self.path.exists():
            return []
        with open(self.path) as f:
            data = json.load(f)
        return list(data.get("videos", []))

    async def save(self, record: LibraryRecord) -> None:
        async with self._lock:
            videos = self._load()
            videos.append(asdict(record))

            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump({"videos": videos}, f, indent=2, default=str)

        logger.info(f"Saved {record.platform} render to library ({record.record_id})")

    async def list_records(self) -> List[LibraryRecord]:
        async with self._lock:
            return [LibraryRecord(**v) for v in self._load()]
