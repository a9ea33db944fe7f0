"""
serverinit service layer

External command execution and apt package management.
"""

from serverinit.services.command import CmdResult, CommandRunner
from serverinit.services.apt import AptClient

__all__ = [
    "CmdResult",
    "CommandRunner",
    "AptClient",
]
