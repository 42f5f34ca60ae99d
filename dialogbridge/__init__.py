"""
dialogbridge - asynchronous remote calls between two single-threaded runtimes
that can only exchange strings.
"""

__version__ = "0.1.0"
__logo__ = "⇄"

from dialogbridge.bridge import Bridge, ResponseContext, create_bridge, create_loopback_pair
from dialogbridge.promise import Deferred, ManualScheduler, Promise, use_scheduler
from dialogbridge.utils.exceptions import BridgeError, RemoteError

__all__ = [
    "Bridge",
    "BridgeError",
    "Deferred",
    "ManualScheduler",
    "Promise",
    "RemoteError",
    "ResponseContext",
    "create_bridge",
    "create_loopback_pair",
    "use_scheduler",
    "__version__",
]
