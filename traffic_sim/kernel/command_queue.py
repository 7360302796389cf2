from collections import deque
from typing import Deque, Iterator
from traffic_sim.application.commands import Command

class CommandQueue:
    """FIFO of control commands waiting for the next step boundary."""

    def __init__(self):
        self._pending: Deque[Command] = deque()

    def add(self, command: Command):
        self._pending.append(command)

    def drain(self) -> Iterator[Command]:
        # Commands queued while draining (e.g. by a command) are yielded in the same pass.
        while self._pending:
            yield self._pending.popleft()

    def __len__(self) -> int:
        return len(self._pending)
