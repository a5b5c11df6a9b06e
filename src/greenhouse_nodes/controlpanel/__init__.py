"""Control panel side: fake communication channel and event fan-out."""

from greenhouse_nodes.controlpanel.fake_channel import (
    FakeCommunicationChannel,
    parse_node_spec,
    parse_sensor_spec,
)
from greenhouse_nodes.controlpanel.logic import ControlPanelLogic

__all__ = [
    "ControlPanelLogic",
    "FakeCommunicationChannel",
    "parse_node_spec",
    "parse_sensor_spec",
]
