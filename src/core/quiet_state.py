import time
from typing import Optional


class QuietState:
    """
    Drain marker of the probe server.

    ``quiet_since`` is written once, on the first trigger, and never cleared.
    Readers take no lock: the attribute is published by a single assignment.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self.quiet_since: Optional[float] = None

    def trigger(self) -> bool:
        """
        Enter quiet mode. Later triggers keep the first timestamp.

        Returns:
            bool: True if this call set the state, False if it was already set.
        """
        if self.quiet_since is not None:
            return False
        self.quiet_since = self._clock()
        return True

    def is_active(self, quiet_timeout: float) -> bool:
        quiet_since = self.quiet_since
        if quiet_since is None:
            return False
        return (self._clock() - quiet_since) < quiet_timeout
