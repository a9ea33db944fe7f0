"""
Step base classes

A provisioning step is a named unit run in a fixed order against a shared
context.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from serverinit.download import VerifiedFetcher
from serverinit.models import ServerInitConfig
from serverinit.services import AptClient, CommandRunner


@dataclass
class ProvisionContext:
    """Everything a step needs, passed explicitly instead of via cwd"""

    config: ServerInitConfig
    base_dir: Path
    runner: CommandRunner
    apt: AptClient
    fetcher: VerifiedFetcher
    facts: Dict[str, Any] = field(default_factory=dict)

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run


class Step(ABC):
    """A single provisioning step"""

    step_id: str = ""
    description: str = ""

    @abstractmethod
    async def run(self, ctx: ProvisionContext) -> None:
        """Run the step, raising on failure"""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.step_id}>"
