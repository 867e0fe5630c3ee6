"""
Object Storage Service (OSS) client: buckets, listing and uploads.
"""

import re
from typing import Any, AsyncIterator, Dict, List, Optional, Union
from urllib.parse import quote

from src.services.aps_client import AuthorizedAPSClient
from src.utils.exceptions import UpstreamServiceError
from src.utils.logging import aps_logger as logger

UploadContent = Union[bytes, AsyncIterator[bytes]]


def derive_object_key(filename: str) -> str:
    """Map an uploaded file name onto a safe OSS object key."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    return re.sub(r"[^A-Za-z0-9._-]", "_", name)


class ObjectStoreClient(AuthorizedAPSClient):
    """Client for the bucket that holds every uploaded design."""

    page_size = 100

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._bucket_ready = False

    @property
    def bucket_key(self) -> str:
        return self.config.bucket

    def _bucket_url(self, suffix: str = "") -> str:
        return self.url(f"/oss/v2/buckets/{self.bucket_key}{suffix}")

    async def create_bucket(self) -> bool:
        """Create the bucket. Returns False when it already existed."""
        response = await self._authorized(
            "create_bucket", "POST", self.url("/oss/v2/buckets"),
            allowed_statuses=(409,),
            json={"bucketKey": self.bucket_key, "policyKey": self.config.bucket_policy}
        )
        self._bucket_ready = True

        created = response.status_code != 409
        logger.info(
            "Bucket created" if created else "Bucket already exists",
            event="bucket_ready",
            metadata={"bucket": self.bucket_key, "policy": self.config.bucket_policy}
        )
        return created

    async def ensure_bucket(self):
        if not self._bucket_ready:
            await self.create_bucket()

    async def list_objects(self) -> List[Dict[str, Any]]:
        """Return every object in the bucket, following pagination."""
        await self.ensure_bucket()

        objects: List[Dict[str, Any]] = []
        url: Optional[str] = self._bucket_url("/objects")
        params: Optional[Dict[str, Any]] = {"limit": self.page_size}

        while url:
            response = await self._authorized("list_objects", "GET", url, params=params)
            payload = response.json()
            objects.extend(payload.get("items") or [])
            # The "next" link already carries the cursor in its query string
            url = payload.get("next")
            params = None

        logger.debug("Listed bucket objects", metadata={"bucket": self.bucket_key, "count": len(objects)})
        return objects

    async def upload_object(self, filename: str, content: UploadContent, size: int) -> Dict[str, Any]:
        """Upload a file through a signed S3 URL and return the OSS object details."""
        await self.ensure_bucket()

        object_key = derive_object_key(filename)
        signed_url = self._bucket_url(f"/objects/{quote(object_key, safe='')}/signeds3upload")

        response = await self._authorized("get_upload_url", "GET", signed_url)
        signed = response.json()
        urls = signed.get("urls") or []
        if not urls or not signed.get("uploadKey"):
            raise UpstreamServiceError(
                "APS returned no signed upload URL", operation="get_upload_url"
            )

        logger.debug(
            "Uploading object bytes",
            event="upload_started",
            metadata={"bucket": self.bucket_key, "object_key": object_key, "size": size}
        )
        # The signed URL carries its own credentials; an Authorization header would be rejected
        await self._send(
            "upload_bytes", "PUT", urls[0],
            content=content,
            headers={"Content-Length": str(size), "Content-Type": "application/octet-stream"}
        )

        response = await self._authorized(
            "complete_upload", "POST", signed_url,
            json={"uploadKey": signed["uploadKey"]}
        )
        obj = response.json()

        logger.info(
            "Object uploaded",
            event="object_uploaded",
            metadata={"bucket": self.bucket_key, "object_key": obj.get("objectKey"), "size": size}
        )
        return obj
