"""Periodic actuator driver.

A PeriodicActuator toggles one actuator on one node at a fixed interval,
independent of sensing. It is used to get actuator activity in the
simulation without a user clicking anything.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from greenhouse_nodes.core.scheduler import ScheduledTask, Scheduler
    from greenhouse_nodes.greenhouse.node import SensorActuatorNode

logger = logging.getLogger(__name__)


class PeriodicActuator:
    """Turns an actuator on and off every `interval` seconds.

    If a toggle fails (for example the actuator does not exist), the
    failure is logged and the driver cancels itself.
    """

    def __init__(
        self,
        name: str,
        node: SensorActuatorNode,
        actuator_type: str,
        actuator_index: int,
        interval: float,
        scheduler: Scheduler,
    ) -> None:
        """Initialize periodic actuator.

        Args:
            name: Driver name, used in log messages.
            node: Node owning the actuator.
            actuator_type: Type of the actuator to toggle.
            actuator_index: Index of the actuator within its type.
            interval: Seconds between toggles.
            scheduler: Shared scheduler running the driver.

        Raises:
            ValueError: If interval is not positive.
        """
        if interval <= 0:
            msg = f"Interval must be positive, got {interval}"
            raise ValueError(msg)
        self._name = name
        self._node = node
        self._actuator_type = actuator_type
        self._actuator_index = actuator_index
        self._interval = interval
        self._scheduler = scheduler
        self._task: ScheduledTask | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def node(self) -> SensorActuatorNode:
        return self._node

    @property
    def actuator_type(self) -> str:
        return self._actuator_type

    @property
    def actuator_index(self) -> int:
        return self._actuator_index

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        """Whether the driver is scheduled and has not cancelled itself."""
        with self._lock:
            return self._task is not None and not self._task.cancelled

    def start(self) -> None:
        """Start toggling. The first toggle happens after one interval."""
        with self._lock:
            if self._task is not None and not self._task.cancelled:
                return
            self._task = self._scheduler.schedule_at_fixed_rate(
                self._toggle,
                self._interval,
                self._interval,
                name=self._name,
            )

    def stop(self) -> None:
        """Stop toggling. Safe to call more than once."""
        with self._lock:
            task, self._task = self._task, None
        if task is not None:
            logger.info("-- Stopping %s", self._name)
            task.cancel()

    def _toggle(self) -> None:
        logger.info(
            " > %s: toggle %s[%d] on node %d",
            self._name,
            self._actuator_type,
            self._actuator_index,
            self._node.id,
        )
        try:
            self._node.toggle_actuator(self._actuator_type, self._actuator_index)
        except Exception as e:
            logger.error("%s failed to toggle an actuator: %s", self._name, e)
            with self._lock:
                if self._task is not None:
                    self._task.cancel()

    def __repr__(self) -> str:
        return (
            f"PeriodicActuator({self._name!r}, node={self._node.id}, "
            f"{self._actuator_type}[{self._actuator_index}], every {self._interval}s)"
        )
