from abc import ABC, abstractmethod
from typing import Any
from traffic_sim.domain.config import SimulationConfig

# Commands are queued and executed by the kernel at the start of its next tick,
# so control never lands in the middle of a step.

class Command(ABC):
    @abstractmethod
    def execute(self, kernel: Any):
        pass

class StartCommand(Command):
    def execute(self, kernel: Any):
        kernel.start()

class PauseCommand(Command):
    def execute(self, kernel: Any):
        kernel.pause()

class ResumeCommand(Command):
    def execute(self, kernel: Any):
        kernel.resume()

class StopCommand(Command):
    def execute(self, kernel: Any):
        kernel.stop()

class ResetCommand(Command):
    def execute(self, kernel: Any):
        kernel.reset()

class ApplyConfigCommand(Command):
    """Swap in a new (already validated) config. Rebuilds every component, which is a reset."""

    def __init__(self, config: SimulationConfig):
        self.config = config

    def execute(self, kernel: Any):
        kernel.apply_config(self.config)
