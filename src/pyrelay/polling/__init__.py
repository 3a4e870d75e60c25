"""Polling engine: a named-interval primitive plus fleet and focus pollers."""

from pyrelay.polling.fleet import FleetPoller
from pyrelay.polling.focus import FocusPoller
from pyrelay.polling.poller import ErrorHook, Poller, PollTask

__all__ = ["ErrorHook", "FleetPoller", "FocusPoller", "PollTask", "Poller"]
