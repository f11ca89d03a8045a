"""
Core run supervision.

`EngineRunner` runs the engine in the foreground for the CLI, while
`RunOrchestrator` supervises one background run at a time and streams its
output as events. `RunWorkspace` and `EnvironmentDoctor` support both.
"""

from .doctor import EnvironmentDoctor
from .event_bus import EventBus, EventSubscription
from .orchestrator import RunOrchestrator
from .process_slot import ProcessSlot
from .runner import EngineRunner, ExitStatus, run_mode
from .workspace import RunWorkspace

__all__ = [
    "EngineRunner",
    "EnvironmentDoctor",
    "EventBus",
    "EventSubscription",
    "ExitStatus",
    "ProcessSlot",
    "RunOrchestrator",
    "RunWorkspace",
    "run_mode",
]
