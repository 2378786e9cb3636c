"""
Cross-session "please refetch" signal.
One session publishes after a successful write; every other open session
observes the new stamp on its next rerun and reloads its list.
"""
import logging
import time
from typing import Callable, Dict, List

import streamlit as st

from config.constants import REFRESH_TOPIC

logger = logging.getLogger("TransferPortal")


@st.cache_resource
def shared_signal_store() -> Dict[str, str]:
    """Process-wide store shared by every browser session."""
    return {}


class RefreshChannel:
    """Single-topic publish/subscribe over a shared stamp store."""

    def __init__(self, topic: str = REFRESH_TOPIC, store: Dict[str, str] = None):
        self.topic = topic
        self._store = store if store is not None else {}
        self._subscribers: List[Callable[[], None]] = []
        # Anything already in the store predates this session
        self._last_seen = self._store.get(topic)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self) -> str:
        """Write a fresh stamp. The publishing channel does not see its own write."""
        stamp = str(time.time_ns())
        self._store[self.topic] = stamp
        self._last_seen = stamp
        logger.info(f"Refresh signal published on '{self.topic}'")
        return stamp

    def poll(self) -> bool:
        """Deliver a pending signal to subscribers. Returns True if one fired."""
        stamp = self._store.get(self.topic)
        if stamp is None or stamp == self._last_seen:
            return False
        self._last_seen = stamp
        for callback in list(self._subscribers):
            callback()
        return True
