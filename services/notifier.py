"""
Change Notifier

Sink for "this changed" events. The engine hands every change to an
injected notifier and never waits for delivery; fanning events out to
connected clients is the transport layer's job.
"""

import logging

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """No-op notifier. Subclass and override notify() to deliver events."""

    def notify(self, household_id, event, payload):
        pass


class LoggingNotifier(ChangeNotifier):
    """Logs every event; the default for the Flask app."""

    def __init__(self, level=logging.INFO):
        self.level = level

    def notify(self, household_id, event, payload):
        logger.log(self.level, "household=%s event=%s payload_keys=%s",
                   household_id, event, sorted(payload))


def emit(notifier, household_id, event, payload):
    """
    Fire-and-forget delivery.

    A failing notifier must not undo or fail an operation that has already
    committed, so delivery errors are logged and dropped here.
    """
    if notifier is None:
        return
    try:
        notifier.notify(household_id, event, payload)
    except Exception:
        logger.warning("Change notification %s for household %s failed",
                       event, household_id, exc_info=True)
