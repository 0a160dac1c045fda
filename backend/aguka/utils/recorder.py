import logging
import os
import shutil
from typing import List

import aiofiles

from .file_paths import ensure_upload_directory, safe_join, FileTypes

logger = logging.getLogger(__name__)

STOP_MARKER = ".stopped"


class RecorderStoppedError(RuntimeError):
    pass


class ChunkRecorder:
    """
    Buffer for the encoded chunks of one session's camera recording.

    Chunks live in a per-session directory so the buffer survives worker
    restarts; the ``.stopped`` marker makes stopping a one-way transition.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.directory = safe_join(ensure_upload_directory(FileTypes.CHUNKS), session_id)

    def open(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    @property
    def is_stopped(self) -> bool:
        return os.path.exists(os.path.join(self.directory, STOP_MARKER))

    def _chunk_path(self, chunk_index: int) -> str:
        return os.path.join(self.directory, f"chunk_{chunk_index:06d}.webm")

    async def append(self, chunk_index: int, data: bytes) -> int:
        if chunk_index < 0:
            raise ValueError("chunk_index must be non-negative")
        if self.is_stopped:
            raise RecorderStoppedError(f"Recording for session {self.session_id} is already stopped")
        self.open()
        async with aiofiles.open(self._chunk_path(chunk_index), "wb") as f:
            await f.write(data)
        logger.debug(f"Chunk {chunk_index} saved for session {self.session_id}, size: {len(data)} bytes")
        return len(data)

    def stop(self) -> bool:
        """Stop accepting chunks. Returns False when the recorder was already stopped."""
        if self.is_stopped:
            return False
        self.open()
        with open(os.path.join(self.directory, STOP_MARKER), "w") as marker:
            marker.write("")
        logger.info(f"Recording stopped for session {self.session_id}")
        return True

    def chunk_files(self) -> List[str]:
        if not os.path.isdir(self.directory):
            return []
        names = sorted(
            name for name in os.listdir(self.directory)
            if name.startswith("chunk_") and name.endswith(".webm")
        )
        return [os.path.join(self.directory, name) for name in names]

    async def assemble(self) -> bytes:
        """Concatenate the buffered chunks, in index order, into one WebM payload."""
        parts = []
        for chunk_file in self.chunk_files():
            async with aiofiles.open(chunk_file, "rb") as f:
                parts.append(await f.read())
        video = b"".join(parts)
        logger.info(f"Assembled {len(parts)} chunks for session {self.session_id} ({len(video)} bytes)")
        return video

    def discard(self) -> None:
        shutil.rmtree(self.directory, ignore_errors=True)
