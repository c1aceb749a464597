"""
listeners.py - Simulation callback interfaces

Defines the two listener interfaces a report can subscribe to.

DESIGN PHILOSOPHY:
- Interfaces, not a shared base report class
- A report registers for exactly the callbacks it needs
- Every callback must have defined, non-throwing behavior
"""

from abc import ABC, abstractmethod
from typing import List

from dtnreport.core.entities import Host, Message


class UpdateListener(ABC):
    """
    Receives periodic world tick updates.

    Called once per simulation update with the current active host set.
    """

    @abstractmethod
    def updated(self, hosts: List[Host]):
        """
        Handle a world tick.

        Args:
            hosts: Hosts active in the simulation at this tick
        """
        pass


class MessageListener(ABC):
    """
    Receives message lifecycle events.

    Implementations must handle every callback; none may be left as an
    "unsupported" stub.
    """

    @abstractmethod
    def new_message(self, message: Message):
        """A message was created."""
        pass

    @abstractmethod
    def message_transfer_started(self, message: Message, from_host: Host, to_host: Host):
        """A transfer of message from from_host to to_host started."""
        pass

    @abstractmethod
    def message_transferred(self, message: Message, from_host: Host, to_host: Host,
                            final_target: bool):
        """
        A transfer completed.

        Args:
            message: Transferred message
            from_host: Sending host
            to_host: Receiving host
            final_target: True if to_host is the message's destination
        """
        pass

    @abstractmethod
    def message_transfer_aborted(self, message: Message, from_host: Host, to_host: Host):
        """A transfer was aborted before completion."""
        pass

    @abstractmethod
    def message_deleted(self, message: Message, where: Host, dropped: bool):
        """
        A message was removed from a host's buffer.

        Args:
            message: Removed message
            where: Host whose buffer the message was removed from
            dropped: True if removed because the buffer was full
        """
        pass
