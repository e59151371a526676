"""Pulsar X2 family backends."""

from pulsarbattery.drivers.pulsar.driver import (
    PulsarBackend,
    X2CrazylightBackend,
    X2V1Backend,
)

__all__ = ["PulsarBackend", "X2CrazylightBackend", "X2V1Backend"]
