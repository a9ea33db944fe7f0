"""
Command runner

Runs external commands as argv lists with consistent logging, optional sudo
and dry-run support.
"""

import asyncio
import os
import shlex
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from loguru import logger

from serverinit.exceptions import CommandError


@dataclass(frozen=True)
class CmdResult:
    """Result of a finished command"""

    argv: list
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class CommandRunner:
    """Sequential command runner"""

    def __init__(self, sudo: bool = False, dry_run: bool = False):
        self.sudo = sudo
        self.dry_run = dry_run

    def build_argv(self, argv: Sequence[str], privileged: bool = False) -> list:
        argv_list = [str(a) for a in argv]
        if privileged and self.sudo:
            return ["sudo", *argv_list]
        return argv_list

    async def run(
        self,
        argv: Sequence[str],
        *,
        privileged: bool = False,
        check: bool = True,
        cwd: Optional[str] = None,
        input_data: Union[bytes, str, None] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CmdResult:
        """
        Run a command and capture its output.

        Args:
            argv: program and arguments
            privileged: prefix with sudo when the runner is in sudo mode
            check: raise CommandError on non-zero exit
            cwd: working directory for the child only
            input_data: bytes or text fed to stdin
            env: extra environment variables

        Returns:
            CmdResult with decoded stdout/stderr
        """
        argv_list = self.build_argv(argv, privileged)
        logger.info(f"[cmd] {format_argv(argv_list)}")

        if self.dry_run:
            return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

        if isinstance(input_data, str):
            input_data = input_data.encode()

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv_list,
                stdin=asyncio.subprocess.PIPE if input_data is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=dict(os.environ, **(env or {})),
            )
        except (FileNotFoundError, PermissionError) as e:
            raise CommandError(
                f"Cannot start {argv_list[0]}: {e}",
                context={"argv": argv_list, "error": str(e)},
            ) from e

        out, err = await proc.communicate(input_data)
        stdout = out.decode(errors="replace") if out else ""
        stderr = err.decode(errors="replace") if err else ""

        if stdout:
            logger.debug(f"[cmd] stdout: {stdout.strip()}")
        if stderr:
            logger.debug(f"[cmd] stderr: {stderr.strip()}")

        result = CmdResult(
            argv=argv_list, returncode=proc.returncode, stdout=stdout, stderr=stderr
        )

        if check and not result.ok:
            raise CommandError(
                f"Command failed ({result.returncode}): {format_argv(argv_list)}",
                context={
                    "argv": argv_list,
                    "returncode": result.returncode,
                    "stderr": stderr.strip(),
                },
            )

        return result
