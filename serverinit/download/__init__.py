"""
serverinit download layer

Verified single-shot downloads and file digest checks.
"""

from serverinit.download.fetcher import VerifiedFetcher
from serverinit.download.verifier import FileVerifier

__all__ = [
    "VerifiedFetcher",
    "FileVerifier",
]
