# DAVSync Notifications
# Topic-based observer hub for folder list updates

import threading
from collections.abc import Callable

# Emitted after discovery, once the selected folders are queued
FOLDER_LIST_UPDATED = "davsync.updateFolderList"

Observer = Callable[[str, str], None]


class Notifier:
    """
    Delivers notifications to observers subscribed to a topic.

    Observers are called with ``(topic, account_id)`` on the notifying
    thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observers: dict[str, list[Observer]] = {}

    def subscribe(self, topic: str, observer: Observer) -> None:
        """Register an observer for a topic."""
        with self._lock:
            self._observers.setdefault(topic, []).append(observer)

    def unsubscribe(self, topic: str, observer: Observer) -> bool:
        """Remove an observer. Returns False if it was not subscribed."""
        with self._lock:
            observers = self._observers.get(topic, [])
            if observer not in observers:
                return False
            observers.remove(observer)
            return True

    def notify(self, topic: str, account_id: str) -> int:
        """
        Notify all observers of a topic.

        Returns:
            Number of observers called.
        """
        with self._lock:
            observers = list(self._observers.get(topic, []))
        for observer in observers:
            observer(topic, account_id)
        return len(observers)
