"""Tests for VerifiedFetcher.

Covers the verify-then-hand-over contract: matching payloads stay on disk,
mismatching or failed downloads leave nothing behind.
"""

import asyncio
import hashlib
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from serverinit.download import VerifiedFetcher
from serverinit.exceptions import (
    ConfigValidationError,
    DigestMismatchError,
    FilesystemError,
    TransferError,
    VerificationError,
)
from serverinit.models import ReadyArtifact
from tests.conftest import make_response


URL = "https://getcomposer.org/installer"


def sha384(data: bytes) -> str:
    return hashlib.sha384(data).hexdigest()


@pytest.mark.asyncio
async def test_matching_payload_is_verified(tmp_path: Path, mock_session: Any) -> None:
    """Scenario A: expected = sha384("hello"), payload "hello"."""
    mock_session.get.return_value = make_response(b"hello")
    dest = tmp_path / "composer-setup.php"

    fetcher = VerifiedFetcher(session=mock_session)
    artifact = await fetcher.fetch_and_verify(URL, dest, sha384(b"hello"), "sha384")

    assert isinstance(artifact, ReadyArtifact)
    assert artifact.path == dest
    assert artifact.digest == sha384(b"hello")
    assert artifact.size == 5
    assert dest.read_bytes() == b"hello"
    mock_session.get.assert_called_once_with(URL)


@pytest.mark.asyncio
async def test_mismatching_payload_is_removed(tmp_path: Path, mock_session: Any) -> None:
    """Scenario B: expected = sha384("hello"), payload "world"."""
    mock_session.get.return_value = make_response(b"world")
    dest = tmp_path / "composer-setup.php"

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(DigestMismatchError) as exc_info:
        await fetcher.fetch_and_verify(URL, dest, sha384(b"hello"), "sha384")

    assert not dest.exists()
    err = exc_info.value
    assert isinstance(err, VerificationError)
    assert err.expected == sha384(b"hello")
    assert err.actual == sha384(b"world")
    assert err.code == "E301"


@pytest.mark.asyncio
async def test_chunked_payload_digest(tmp_path: Path, mock_session: Any) -> None:
    chunks = [b"<?php ", b"echo 1;", b"\n"]
    payload = b"".join(chunks)
    mock_session.get.return_value = make_response(payload, chunks=chunks)
    dest = tmp_path / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    artifact = await fetcher.fetch_and_verify(URL, dest, sha384(payload))

    assert dest.read_bytes() == payload
    assert artifact.size == len(payload)


@pytest.mark.asyncio
async def test_repeated_fetch_is_idempotent(tmp_path: Path, mock_session: Any) -> None:
    payload = b"installer body"
    mock_session.get.side_effect = [make_response(payload), make_response(payload)]
    dest = tmp_path / "installer"
    fetcher = VerifiedFetcher(session=mock_session)

    first = await fetcher.fetch_and_verify(URL, dest, sha384(payload))
    first_content = dest.read_bytes()
    second = await fetcher.fetch_and_verify(URL, dest, sha384(payload))

    assert first.digest == second.digest
    assert dest.read_bytes() == first_content == payload


@pytest.mark.asyncio
async def test_digest_comparison_is_case_sensitive(
    tmp_path: Path, mock_session: Any
) -> None:
    mock_session.get.return_value = make_response(b"hello")
    dest = tmp_path / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(DigestMismatchError):
        await fetcher.fetch_and_verify(URL, dest, sha384(b"hello").upper())

    assert not dest.exists()


@pytest.mark.asyncio
async def test_other_algorithm(tmp_path: Path, mock_session: Any) -> None:
    mock_session.get.return_value = make_response(b"hello")
    dest = tmp_path / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    artifact = await fetcher.fetch_and_verify(
        URL, dest, hashlib.sha256(b"hello").hexdigest(), "sha256"
    )

    assert artifact.algorithm == "sha256"


@pytest.mark.asyncio
async def test_connection_refused_is_transfer_error(
    tmp_path: Path, mock_session: Any
) -> None:
    """Scenario C: no file created and no digest computed."""
    mock_session.get.side_effect = aiohttp.ClientConnectionError("Connection refused")
    dest = tmp_path / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    with patch.object(fetcher.verifier, "calc_digest") as calc:
        with pytest.raises(TransferError) as exc_info:
            await fetcher.fetch_and_verify(URL, dest, sha384(b"hello"))

    assert not isinstance(exc_info.value, VerificationError)
    assert not dest.exists()
    calc.assert_not_called()


@pytest.mark.asyncio
async def test_http_error_status_is_transfer_error(
    tmp_path: Path, mock_session: Any
) -> None:
    mock_session.get.return_value = make_response(b"not found", status=404)
    dest = tmp_path / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(TransferError, match="HTTP 404"):
        await fetcher.fetch_and_verify(URL, dest, sha384(b"hello"))

    assert not dest.exists()


@pytest.mark.asyncio
async def test_interrupted_download_leaves_no_file(
    tmp_path: Path, mock_session: Any
) -> None:
    async def broken_stream(size):
        yield b"partial"
        raise aiohttp.ClientPayloadError("connection reset")

    response = make_response(b"partial")
    response.content.iter_chunked = broken_stream
    mock_session.get.return_value = response
    dest = tmp_path / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(TransferError):
        await fetcher.fetch_and_verify(URL, dest, sha384(b"partial"))

    assert not dest.exists()


@pytest.mark.asyncio
async def test_cancelled_download_leaves_no_file(
    tmp_path: Path, mock_session: Any
) -> None:
    async def cancelled_stream(size):
        yield b"<?php partial"
        raise asyncio.CancelledError()

    response = make_response(b"<?php partial")
    response.content.iter_chunked = cancelled_stream
    mock_session.get.return_value = response
    dest = tmp_path / "composer-setup.php"

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(asyncio.CancelledError):
        await fetcher.fetch_and_verify(URL, dest, sha384(b"<?php partial"))

    assert not dest.exists()


@pytest.mark.asyncio
async def test_digest_failure_leaves_no_file(
    tmp_path: Path, mock_session: Any
) -> None:
    mock_session.get.return_value = make_response(b"hello")
    dest = tmp_path / "composer-setup.php"

    fetcher = VerifiedFetcher(session=mock_session)
    with patch.object(
        fetcher.verifier, "calc_digest", AsyncMock(side_effect=RuntimeError("read"))
    ):
        with pytest.raises(RuntimeError):
            await fetcher.fetch_and_verify(URL, dest, sha384(b"hello"))

    assert not dest.exists()


@pytest.mark.asyncio
async def test_unwritable_destination_is_filesystem_error(
    tmp_path: Path, mock_session: Any
) -> None:
    mock_session.get.return_value = make_response(b"hello")
    dest = tmp_path / "missing-dir" / "installer"

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(FilesystemError):
        await fetcher.fetch_and_verify(URL, dest, sha384(b"hello"))


@pytest.mark.asyncio
async def test_unknown_algorithm_rejected_before_download(
    tmp_path: Path, mock_session: Any
) -> None:
    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(ConfigValidationError):
        await fetcher.fetch_and_verify(URL, tmp_path / "x", "abc", "no-such-hash")

    mock_session.get.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_bytes(mock_session: Any) -> None:
    mock_session.get.return_value = make_response(b"\x99\x01key")

    fetcher = VerifiedFetcher(session=mock_session)
    data = await fetcher.fetch_bytes("https://packages.sury.org/php/apt.gpg")

    assert data == b"\x99\x01key"


@pytest.mark.asyncio
async def test_fetch_bytes_http_error(mock_session: Any) -> None:
    mock_session.get.return_value = make_response(b"", status=503)

    fetcher = VerifiedFetcher(session=mock_session)
    with pytest.raises(TransferError):
        await fetcher.fetch_bytes("https://packages.sury.org/php/apt.gpg")


@pytest.mark.asyncio
async def test_injected_session_is_not_closed(mock_session: Any) -> None:
    mock_session.close = MagicMock()
    async with VerifiedFetcher(session=mock_session):
        pass

    mock_session.close.assert_not_called()
