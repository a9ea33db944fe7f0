"""
File verifier

Digest calculation and exact comparison against a pinned digest.
"""

import hashlib
import os
from typing import Optional

import aiofiles

from serverinit.exceptions import ConfigValidationError
from serverinit.models import VerificationResult


def new_hasher(algorithm: str):
    """Return a fresh hashlib object, rejecting unknown algorithms"""
    try:
        return hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        raise ConfigValidationError(
            f"Unknown digest algorithm: {algorithm}",
            context={"algorithm": algorithm, "error": str(e)},
        )


class FileVerifier:
    """File verifier"""

    @staticmethod
    async def calc_digest(file_path: str, algorithm: str = "sha384") -> Optional[str]:
        """
        Compute the hex digest of a file

        Args:
            file_path: path of the file
            algorithm: hashlib algorithm name

        Returns:
            lowercase hex digest, or None if the file does not exist
        """
        hasher = new_hasher(algorithm)

        if not os.path.exists(file_path):
            return None

        async with aiofiles.open(file_path, "rb") as f:
            while True:
                data = await f.read(4096)
                if not data:
                    break
                hasher.update(data)
        return hasher.hexdigest()

    @staticmethod
    async def check(
        file_path: str, expected_digest: str, algorithm: str = "sha384"
    ) -> VerificationResult:
        """
        Compare the file digest with the expected one.

        The comparison is exact and case sensitive.
        """
        actual = await FileVerifier.calc_digest(file_path, algorithm)
        if actual is not None and actual == expected_digest:
            return VerificationResult.VERIFIED
        return VerificationResult.MISMATCHED

    @staticmethod
    async def verify(
        file_path: str, expected_digest: str, algorithm: str = "sha384"
    ) -> bool:
        result = await FileVerifier.check(file_path, expected_digest, algorithm)
        return result is VerificationResult.VERIFIED
