"""
Pytest configuration and fixtures for the model viewer tests.
"""

import os

# Must be set before src.config is imported
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_TO_CONSOLE", "false")
os.environ.setdefault("APS_CLIENT_ID", "test-client")
os.environ.setdefault("APS_CLIENT_SECRET", "test-secret")

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from src.config.config import APSConfig, TranslationConfig, UploadConfig
from src.services.aps_auth import TokenProvider
from src.services.metrics_service import MetricsCollectionService
from src.services.model_derivative import ModelDerivativeClient
from src.services.model_service import ModelService
from src.services.object_store import ObjectStoreClient


APS_BASE_URL = "https://aps.test"
S3_HOST = "s3.test"
BUCKET = "test-bucket"


class FakeAPS:
    """In-memory stand-in for the APS endpoints used by the clients."""

    def __init__(self, page_size: int = 2):
        self.requests: List[httpx.Request] = []
        self.page_size = page_size
        self.bucket_exists = False
        self.objects: List[Dict[str, Any]] = []
        self.uploads: Dict[str, bytes] = {}
        self.jobs: List[Dict[str, Any]] = []
        self.manifests: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[str, int] = {}
        self.tokens_issued = 0

    # Helpers for tests

    def add_object(self, key: str) -> Dict[str, Any]:
        obj = {
            "bucketKey": BUCKET,
            "objectKey": key,
            "objectId": f"urn:adsk.objects:os.object:{BUCKET}/{key}",
            "size": 0
        }
        self.objects.append(obj)
        return obj

    def queue_manifests(self, urn: str, *payloads: Optional[Dict[str, Any]]):
        """Queue manifests served in order; None serves a 404. The last one repeats."""
        self.manifests.setdefault(urn, []).extend(payloads)

    def calls(self, operation: str) -> List[httpx.Request]:
        return [r for r in self.requests if self._operation(r) == operation]

    @property
    def network_calls(self) -> int:
        return len(self.requests)

    # Transport

    def _operation(self, request: httpx.Request) -> str:
        path = request.url.path
        method = request.method
        if request.url.host == S3_HOST:
            return "upload_bytes"
        if path == "/authentication/v2/token":
            return "token"
        if path == "/oss/v2/buckets" and method == "POST":
            return "create_bucket"
        if path == f"/oss/v2/buckets/{BUCKET}/objects":
            return "list_objects"
        if path.endswith("/signeds3upload"):
            return "get_upload_url" if method == "GET" else "complete_upload"
        if path == "/modelderivative/v2/designdata/job":
            return "start_translation"
        if path.endswith("/manifest"):
            return "get_manifest"
        return "unknown"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        operation = self._operation(request)

        if operation in self.failures:
            return httpx.Response(self.failures[operation], json={"reason": f"{operation} failed"})

        if operation == "token":
            form = parse_qs(request.content.decode())
            self.tokens_issued += 1
            return httpx.Response(200, json={
                "access_token": f"token-{self.tokens_issued}",
                "token_type": "Bearer",
                "expires_in": 3599,
                "scope": form.get("scope", [""])[0]
            })

        if operation == "create_bucket":
            if self.bucket_exists:
                return httpx.Response(409, json={"reason": "Bucket already exists"})
            self.bucket_exists = True
            body = json.loads(request.content)
            return httpx.Response(200, json={"bucketKey": body["bucketKey"], "policyKey": body["policyKey"]})

        if operation == "list_objects":
            start = int(request.url.params.get("startAt", "0"))
            page = self.objects[start:start + self.page_size]
            payload: Dict[str, Any] = {"items": page}
            if start + self.page_size < len(self.objects):
                payload["next"] = f"{APS_BASE_URL}/oss/v2/buckets/{BUCKET}/objects?startAt={start + self.page_size}"
            return httpx.Response(200, json=payload)

        if operation == "get_upload_url":
            key = request.url.path.split("/")[-2]
            return httpx.Response(200, json={
                "uploadKey": f"upload-{key}",
                "urls": [f"https://{S3_HOST}/upload/{key}"]
            })

        if operation == "upload_bytes":
            self.uploads[request.url.path.rsplit("/", 1)[-1]] = request.content
            return httpx.Response(200)

        if operation == "complete_upload":
            key = request.url.path.split("/")[-2]
            obj = self.add_object(key)
            obj["size"] = len(self.uploads.get(key, b""))
            return httpx.Response(200, json=obj)

        if operation == "start_translation":
            job = json.loads(request.content)
            self.jobs.append(job)
            return httpx.Response(200, json={"result": "created", "urn": job["input"]["urn"]})

        if operation == "get_manifest":
            urn = request.url.path.split("/")[-2]
            queued = self.manifests.get(urn)
            if not queued:
                return httpx.Response(404, json={"diagnostic": "Requested resource does not exist."})
            payload = queued.pop(0) if len(queued) > 1 else queued[0]
            if payload is None:
                return httpx.Response(404, json={"diagnostic": "Requested resource does not exist."})
            return httpx.Response(200, json=payload)

        return httpx.Response(404)


def manifest(status: str, progress: Optional[str] = None, derivatives: Optional[list] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": "manifest", "status": status, "progress": progress or "complete"}
    if derivatives is not None:
        payload["derivatives"] = derivatives
    return payload


class NoSleep:
    """Records requested sleeps instead of waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


@pytest.fixture
def fake_aps() -> FakeAPS:
    return FakeAPS()


@pytest.fixture
def aps_config() -> APSConfig:
    return APSConfig(
        client_id="test-client",
        client_secret="test-secret",
        bucket=BUCKET,
        base_url=APS_BASE_URL
    )


@pytest.fixture
def http_client(fake_aps) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_aps.handler))


@pytest.fixture
def metrics() -> MetricsCollectionService:
    return MetricsCollectionService()


@pytest.fixture
def no_sleep() -> NoSleep:
    return NoSleep()


@pytest.fixture
def token_provider(aps_config, http_client, metrics) -> TokenProvider:
    return TokenProvider(aps_config, http_client=http_client, metrics=metrics)


@pytest.fixture
def object_store(token_provider, aps_config, http_client, metrics) -> ObjectStoreClient:
    return ObjectStoreClient(token_provider, aps_config, http_client=http_client, metrics=metrics)


@pytest.fixture
def derivative(token_provider, aps_config, http_client, metrics, no_sleep) -> ModelDerivativeClient:
    return ModelDerivativeClient(
        token_provider,
        translation_config=TranslationConfig(poll_interval_seconds=2.0, max_poll_attempts=30),
        sleep=no_sleep,
        aps_config=aps_config,
        http_client=http_client,
        metrics=metrics
    )


@pytest.fixture
def upload_config() -> UploadConfig:
    return UploadConfig()


@pytest.fixture
def model_service(object_store, derivative, upload_config, metrics) -> ModelService:
    return ModelService(object_store, derivative, upload_config=upload_config, metrics=metrics)
