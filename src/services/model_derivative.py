"""
Model Derivative client: translation jobs and manifest polling.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from src.config.config import TranslationConfig, config
from src.models.interfaces import Manifest
from src.services.aps_client import AuthorizedAPSClient
from src.utils.exceptions import TranslationFailedError, TranslationTimeoutError
from src.utils.logging import aps_logger as logger


class ModelDerivativeClient(AuthorizedAPSClient):
    """Submits translation jobs and reads their manifests."""

    def __init__(self, token_provider, translation_config: Optional[TranslationConfig] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep, **kwargs):
        super().__init__(token_provider, **kwargs)
        self.translation_config = translation_config or config.translation
        self._sleep = sleep

    def _designdata_url(self, suffix: str) -> str:
        return self.url(f"/modelderivative/v2/designdata{suffix}")

    async def start_translation(self, urn: str, root_filename: Optional[str] = None) -> Dict[str, Any]:
        """Submit a translation job producing viewable derivatives."""
        job_input: Dict[str, Any] = {"urn": urn}
        if root_filename:
            job_input["compressedUrn"] = True
            job_input["rootFilename"] = root_filename

        job = {
            "input": job_input,
            "output": {"formats": self.translation_config.output_formats}
        }

        response = await self._authorized(
            "start_translation", "POST", self._designdata_url("/job"),
            urn=urn, json=job, headers={"x-ads-force": "true"}
        )
        logger.info(
            "Translation job submitted",
            urn=urn,
            event="translation_started",
            metadata={"root_filename": root_filename, "formats": self.translation_config.output_formats}
        )
        return response.json()

    async def get_manifest(self, urn: str) -> Optional[Dict[str, Any]]:
        """Fetch the raw manifest, or None when the vendor has none for this URN."""
        response = await self._authorized(
            "get_manifest", "GET", self._designdata_url(f"/{urn}/manifest"),
            allowed_statuses=(404,), urn=urn
        )
        if response.status_code == 404:
            return None
        return response.json()

    async def get_status(self, urn: str) -> Optional[Manifest]:
        manifest = await self.get_manifest(urn)
        return Manifest.from_payload(manifest) if manifest is not None else None

    async def wait_for_translation(self, urn: str, interval_seconds: Optional[float] = None,
                                   max_attempts: Optional[int] = None) -> Manifest:
        """Poll the manifest until the job succeeds, fails or the attempts run out."""
        interval = self.translation_config.poll_interval_seconds if interval_seconds is None else interval_seconds
        attempts = max_attempts or self.translation_config.max_poll_attempts

        for attempt in range(1, attempts + 1):
            manifest = await self.get_status(urn)

            if manifest is not None:
                logger.debug(
                    "Translation status polled",
                    urn=urn,
                    metadata={"attempt": attempt, "status": manifest.status, "progress": manifest.progress}
                )
                if manifest.succeeded:
                    return manifest
                if manifest.is_terminal:
                    logger.warning(
                        "Translation failed",
                        urn=urn,
                        event="translation_failed",
                        metadata={"status": manifest.status, "messages": manifest.messages}
                    )
                    raise TranslationFailedError(urn, manifest.messages, manifest.status)

            if attempt < attempts:
                await self._sleep(interval)

        logger.warning(
            "Translation polling timed out",
            urn=urn,
            event="translation_timeout",
            metadata={"attempts": attempts, "interval_seconds": interval}
        )
        raise TranslationTimeoutError(urn, attempts, interval)
