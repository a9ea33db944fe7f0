"""Pytest configuration and shared fixtures for serverinit tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from loguru import logger

from serverinit.download import VerifiedFetcher
from serverinit.models import ServerInitConfig
from serverinit.services import AptClient, CmdResult, CommandRunner
from serverinit.steps import ProvisionContext


async def async_chunk_gen(chunks: list) -> AsyncGenerator:
    """Async generator yielding chunks for simulating HTTP responses."""
    for chunk in chunks:
        yield chunk


def make_response(
    content: bytes = b"", status: int = 200, chunks: Optional[list] = None
) -> AsyncMock:
    """Build a mock aiohttp response usable as ``async with session.get()``."""
    response = AsyncMock()
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    response.status = status
    response.headers = {"Content-Length": str(len(content))}
    response.content.iter_chunked = lambda size: async_chunk_gen(
        chunks if chunks is not None else [content]
    )
    response.read = AsyncMock(return_value=content)
    return response


class RecordingRunner(CommandRunner):
    """CommandRunner that records argv lists instead of executing them."""

    def __init__(self, sudo: bool = False, outputs: Optional[dict] = None):
        super().__init__(sudo=sudo, dry_run=False)
        self.calls: list = []
        self.outputs = outputs or {}

    async def run(self, argv, *, privileged=False, check=True, cwd=None,
                  input_data=None, env=None) -> CmdResult:
        argv_list = self.build_argv(argv, privileged)
        self.calls.append(
            {"argv": argv_list, "cwd": cwd, "input": input_data, "env": env}
        )
        program = argv_list[1] if argv_list[0] == "sudo" else argv_list[0]
        stdout = self.outputs.get(program, "")
        return CmdResult(argv=argv_list, returncode=0, stdout=stdout, stderr="")

    def argvs(self) -> list:
        return [c["argv"] for c in self.calls]


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep loguru output out of test runs."""
    logger.remove()
    yield


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock()
    session.closed = False
    return session


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner(
        outputs={
            "lsb_release": "bookworm\n",
            "composer": "Composer version 2.8.1 2024-10-04 11:31:01\n",
            "php": "PHP 8.3.12 (cli)\nCopyright (c) The PHP Group\n",
        }
    )


@pytest.fixture
def make_context(tmp_path: Path, runner: RecordingRunner, mock_session: MagicMock):
    def _make(config: Optional[ServerInitConfig] = None, **kwargs) -> ProvisionContext:
        config = config or ServerInitConfig()
        config.workdir.path = str(tmp_path / "workdir")
        ctx_runner = kwargs.get("runner", runner)
        return ProvisionContext(
            config=config,
            base_dir=Path(config.workdir.path),
            runner=ctx_runner,
            apt=AptClient(ctx_runner),
            fetcher=kwargs.get("fetcher", VerifiedFetcher(session=mock_session)),
        )

    return _make
