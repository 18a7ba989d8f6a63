"""Repository interface for the restaurant store."""

from abc import ABC, abstractmethod


class Store(ABC):
    """Contract for record persistence and multi-record transactions.

    Any call may raise ``Unavailable`` (the caller may retry) or ``Conflict``
    (the caller surfaces it). A failed :meth:`transaction` leaves no partial
    record behind.
    """

    @abstractmethod
    async def insert(self, entity, record):
        """Insert ``record`` and return it with its identifier."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, entity, record_id):
        """Return one record by id or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, entity, record_id, fields):
        """Apply ``fields`` to the record with ``record_id``."""
        raise NotImplementedError

    @abstractmethod
    async def query_all(self, entity, filters=None, order_by=None):
        """List records matching ``filters`` sorted by ``order_by``."""
        raise NotImplementedError

    @abstractmethod
    def transaction(self):
        """Return an async context manager committing all writes at once."""
        raise NotImplementedError
