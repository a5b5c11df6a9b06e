"""greenhouse-nodes: simulated greenhouse sensor/actuator nodes.

Nodes carry noisy sensors and on/off actuators. Actuator changes on any
node are relayed through the greenhouse to the sensors of every node.
A control panel side consumes node, sensor and actuator events from a
communication channel; a scripted fake channel is included for testing.
"""

__version__ = "0.1.0"
