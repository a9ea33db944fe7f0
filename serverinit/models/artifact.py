"""
Artifact models

Outcome types of a verified download.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class VerificationResult(Enum):
    """Outcome of comparing a computed digest with the pinned one"""

    VERIFIED = "verified"
    MISMATCHED = "mismatched"


@dataclass(frozen=True)
class ReadyArtifact:
    """
    A downloaded file whose digest matched.

    Ownership passes to the caller, who is responsible for consuming and
    removing it.
    """

    path: Path
    url: str
    algorithm: str
    digest: str
    size: int
