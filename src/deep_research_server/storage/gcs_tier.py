from __future__ import annotations

import json
import logging
from typing import Iterable

from google.cloud import storage
from google.cloud.exceptions import NotFound

from .base import FileData, StorageTier

logger = logging.getLogger(__name__)


class GCSTier(StorageTier):
    """Store durable files as JSON blobs in a Google Cloud Storage bucket."""

    durability = "durable"

    def __init__(
        self,
        bucket_name: str,
        *,
        prefix: str = "deep-research/memories",
        client: storage.Client | None = None,
    ) -> None:
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)
        self.prefix = prefix.strip("/")

    def _blob_name(self, path: str) -> str:
        return f"{self.prefix}{path}"

    def _path_from_blob(self, name: str) -> str:
        return name[len(self.prefix):]

    def get(self, path: str) -> FileData | None:
        try:
            payload = self.bucket.blob(self._blob_name(path)).download_as_text()
        except NotFound:
            return None
        return json.loads(payload)

    def put(self, path: str, data: FileData) -> None:
        blob = self.bucket.blob(self._blob_name(path))
        blob.upload_from_string(json.dumps(data, ensure_ascii=False), content_type="application/json")

    def remove(self, path: str) -> bool:
        try:
            self.bucket.blob(self._blob_name(path)).delete()
        except NotFound:
            return False
        return True

    def entries(self, prefix: str) -> Iterable[tuple[str, FileData]]:
        results: list[tuple[str, FileData]] = []
        for blob in self.client.list_blobs(self.bucket, prefix=self._blob_name(prefix)):
            try:
                data = json.loads(blob.download_as_text())
            except NotFound:
                # Deleted between listing and download
                continue
            results.append((self._path_from_blob(blob.name), data))
        logger.debug("GCS tier listed %d blobs under %s", len(results), prefix)
        return results
