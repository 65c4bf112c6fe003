"""
Blocks fetched one at a time are kept in a small cache so that they can be
passed as arguments when evaluating module handlers.

The cache has exactly four slots numbered 1 through 4.  Each slot holds
the last JSON value written to it, or None if it was never written.
Writes come from the streaming worker while the execution worker and the
presentation layer read, so access goes through a lock.
"""
import logging
import threading

log = logging.getLogger(__name__)

SLOTS = (1, 2, 3, 4)


class BlockCache(object):
    """
    Fixed size store for the most recently fetched blocks.

    Addressing a slot outside *SLOTS* is logged and otherwise ignored:
    *set* leaves every slot unchanged and *get* returns None.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._slots = dict((slot, None) for slot in SLOTS)

    @staticmethod
    def valid_slot(slot):
        return slot in SLOTS

    def set(self, slot, value):
        """
        Store *value* in *slot*, returning True if the slot exists.
        """
        if not self.valid_slot(slot):
            log.warning("Invalid block cache slot %r", slot)
            return False
        with self._lock:
            self._slots[slot] = value
        return True

    def get(self, slot):
        if not self.valid_slot(slot):
            log.warning("Invalid block cache slot %r", slot)
            return None
        with self._lock:
            return self._slots[slot]

    __getitem__ = get
    __setitem__ = set

    def snapshot(self):
        """
        Return a copy of the slots as a {slot: value} dict.
        """
        with self._lock:
            return dict(self._slots)

    def clear(self):
        with self._lock:
            for slot in SLOTS:
                self._slots[slot] = None

    def __repr__(self):
        filled = [slot for slot, value in self.snapshot().items()
                  if value is not None]
        return "<%s.%s filled=%s>" % (
            self.__class__.__module__, self.__class__.__name__, filled)
