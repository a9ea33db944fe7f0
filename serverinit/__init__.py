"""
serverinit - fresh host provisioning for nginx, PHP and Composer.
"""

__version__ = "0.1.0"

from serverinit.exceptions import ServerInitError

__all__ = ["__version__", "ServerInitError"]
