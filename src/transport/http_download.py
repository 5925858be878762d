"""HTTP streaming download of log file content.

This module fetches LogFile blobs from the CRM instance REST API with a
bearer token and streams the body into a byte sink chunk by chunk.
"""

from __future__ import annotations

from typing import Any, BinaryIO

import httpx

from core.config import ElfConfig
from core.constants import DOWNLOAD_CHUNK_SIZE
from core.errors import DownloadError, ElfConfigError
from core.scratch_buffer import ScratchBuffer


class HttpDownloadClient:
    """Download capability backed by an httpx client."""

    def __init__(
        self,
        instance_url: str,
        access_token: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=instance_url.rstrip("/"),
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ElfConfig) -> "HttpDownloadClient":
        """Build a client from runtime configuration.

        Raises:
            ElfConfigError: If instance URL or access token is unset.
        """
        if not config.instance_url or not config.access_token:
            raise ElfConfigError(
                "HTTP downloads require ELF_INSTANCE_URL and ELF_ACCESS_TOKEN. "
                "Set both, or pass --source-dir to replay local exports."
            )
        return cls(config.instance_url, config.access_token, config.http_timeout)

    def stream_download(self, reference: str, sink: BinaryIO | ScratchBuffer) -> None:
        """Stream the LogFile at ``reference`` into ``sink``.

        Args:
            reference: Instance-relative LogFile path.
            sink: Writable byte sink.

        Raises:
            DownloadError: On transport failure or a non-success status.
        """
        try:
            with self._client.stream("GET", reference) as response:
                if response.status_code >= 400:
                    raise DownloadError(
                        f"Download of {reference} failed with HTTP {response.status_code}. "
                        "Check the access token and the LogFile reference."
                    )
                for chunk in response.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    sink.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            raise DownloadError(f"Download of {reference} failed: {error}.") from error

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def __enter__(self) -> "HttpDownloadClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
