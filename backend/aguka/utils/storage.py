import logging
import os
from dataclasses import dataclass

import aiofiles
import aiofiles.os

from .file_paths import get_bucket_path

logger = logging.getLogger(__name__)


@dataclass
class StoredObject:
    bucket: str
    path: str
    size: int


class ObjectStorage:
    """Bucket/key object store on the local filesystem."""

    def __init__(self, public_base_url: str = "/uploads"):
        self.public_base_url = public_base_url.rstrip("/")

    async def upload(self, bucket: str, key: str, data: bytes, upsert: bool = False) -> StoredObject:
        target = get_bucket_path(bucket, key)
        if not upsert and await aiofiles.os.path.exists(target):
            raise FileExistsError(f"{bucket}/{key} already exists")
        os.makedirs(os.path.dirname(target), exist_ok=True)

        # write then rename so a crashed upload never leaves a truncated object
        tmp_path = f"{target}.part"
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        os.replace(tmp_path, target)
        logger.info(f"Stored {bucket}/{key} ({len(data)} bytes)")
        return StoredObject(bucket=bucket, path=key, size=len(data))

    async def download(self, bucket: str, key: str) -> bytes:
        async with aiofiles.open(get_bucket_path(bucket, key), "rb") as f:
            return await f.read()

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{bucket}/{key}"


object_storage = ObjectStorage()
