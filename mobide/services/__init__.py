"""Service layer - long-lived in-process components.

- SessionRegistry: live sessions and terminal I/O fan-out
- AuthSignalDetector: device-login URL/code scanning
- IdleReaper: periodic reclamation of unattached sessions
"""

from mobide.services.auth_signals import AuthSignalDetector
from mobide.services.idle_reaper import IdleReaper
from mobide.services.terminal import SessionRegistry

__all__ = ["AuthSignalDetector", "IdleReaper", "SessionRegistry"]
