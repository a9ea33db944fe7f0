"""
Verified fetcher

Downloads a resource, checks it against a pinned digest and only hands it
over when the digest matches. Any failure leaves no file behind.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiohttp
from loguru import logger

from serverinit.download.verifier import FileVerifier, new_hasher
from serverinit.exceptions import (
    DigestMismatchError,
    FilesystemError,
    TransferError,
)
from serverinit.models import ReadyArtifact, VerificationResult


CHUNK_SIZE = 8192


class VerifiedFetcher:
    """Single-shot download with digest pinning"""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 60.0,
    ):
        self.timeout = timeout
        self.verifier = FileVerifier()
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Return the aiohttp session, creating one if needed"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owned_session = True
        return self._session

    async def fetch_and_verify(
        self,
        source_url: str,
        local_path: Union[str, Path],
        expected_digest: str,
        algorithm: str = "sha384",
    ) -> ReadyArtifact:
        """
        Download ``source_url`` to ``local_path`` and verify its digest.

        Args:
            source_url: resource to download
            local_path: destination file, its directory must exist
            expected_digest: pinned hex digest, compared case sensitively
            algorithm: hashlib algorithm name

        Returns:
            ReadyArtifact, the file stays on disk and belongs to the caller

        Raises:
            TransferError: the download failed, nothing is left on disk
            FilesystemError: the destination could not be written
            DigestMismatchError: the digest differs, the file has been removed
        """
        # reject unknown algorithms before touching the network
        new_hasher(algorithm)

        file_path = str(local_path)
        name = os.path.basename(file_path)

        logger.info(f"[fetch] {source_url} -> {file_path}")
        try:
            size = await self._download(source_url, file_path)

            logger.debug(f"[verify] {name}: computing {algorithm}")
            actual = await self.verifier.calc_digest(file_path, algorithm)
        except BaseException:
            # cancellation included: nothing unverified may stay on disk
            self._discard(file_path)
            raise

        result = (
            VerificationResult.VERIFIED
            if actual is not None and actual == expected_digest
            else VerificationResult.MISMATCHED
        )

        if result is VerificationResult.MISMATCHED:
            self._discard(file_path)
            logger.error(
                f"[verify] {name}: {algorithm} mismatch "
                f"(expected {expected_digest}, got {actual})"
            )
            raise DigestMismatchError(
                f"Digest verification failed for {name}",
                expected=expected_digest,
                actual=actual,
                algorithm=algorithm,
                context={"url": source_url, "file": file_path},
            )

        logger.success(f"[verify] {name}: {algorithm} verified")
        return ReadyArtifact(
            path=Path(file_path),
            url=source_url,
            algorithm=algorithm,
            digest=actual,
            size=size,
        )

    async def fetch_bytes(self, url: str) -> bytes:
        """Download a small resource into memory, without verification"""
        logger.info(f"[fetch] {url}")
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise TransferError(
                        f"HTTP {response.status}",
                        context={"url": url, "status": response.status},
                    )
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferError(
                f"Download failed: {url}", context={"url": url, "error": str(e)}
            ) from e

    async def _download(self, url: str, file_path: str) -> int:
        """Stream the response body into file_path, return bytes written"""
        written = 0
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise TransferError(
                        f"HTTP {response.status}",
                        context={"url": url, "status": response.status},
                    )

                async with aiofiles.open(file_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        await f.write(chunk)
                        written += len(chunk)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._discard(file_path)
            logger.error(f"[fetch] download failed: {url}: {e}")
            raise TransferError(
                f"Download failed: {url}", context={"url": url, "error": str(e)}
            ) from e
        except TransferError:
            self._discard(file_path)
            raise
        except OSError as e:
            self._discard(file_path)
            raise FilesystemError(
                f"Cannot write {file_path}",
                context={"file": file_path, "error": str(e)},
            ) from e

        logger.debug(f"[fetch] {os.path.basename(file_path)}: {written} bytes")
        return written

    @staticmethod
    def _discard(file_path: str) -> None:
        """Remove a partial or unverified file"""
        if not os.path.lexists(file_path):
            return
        try:
            os.remove(file_path)
        except OSError as e:
            raise FilesystemError(
                f"Cannot remove {file_path}",
                context={"file": file_path, "error": str(e)},
            ) from e
        logger.debug(f"[fetch] removed {file_path}")

    async def close(self) -> None:
        """Close the session if we created it"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
