from .events import EventCategory, Outcome, TelemetryEvent, build_event
from .logger import TelemetryLogger

__all__ = ["EventCategory", "Outcome", "TelemetryEvent", "TelemetryLogger", "build_event"]
