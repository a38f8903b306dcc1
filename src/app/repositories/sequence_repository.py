"""Sequence Repository Interface

Defines the contract for the invoice number sequence.
"""

from abc import ABC, abstractmethod


class SequenceRepository(ABC):
    """
    Repository interface for the invoice number sequence

    Implementations must make reserve_next a mutually exclusive critical
    section: no two callers ever observe the same reserved value.
    """

    @abstractmethod
    async def reserve_next(self) -> int:
        """
        Atomically increment and durably persist the counter

        Returns:
            The reserved invoice number

        Raises:
            StorageError: The counter could not be persisted. No value
                was reserved and in-memory state is unchanged.
        """
        pass

    @abstractmethod
    async def peek_next(self) -> int:
        """
        Return the number the next reservation would get, without reserving it

        Advisory only: a concurrent reserve_next may take it first.

        Returns:
            last issued number + 1
        """
        pass

    @abstractmethod
    async def release(self, invoice_number: int) -> bool:
        """
        Roll the counter back to invoice_number - 1

        Only applies when invoice_number is still the last reserved value.
        Otherwise the number stays burned (a gap) and nothing changes.

        Args:
            invoice_number: A number previously returned by reserve_next

        Returns:
            True if the counter was rolled back, False if it was a no-op
        """
        pass
