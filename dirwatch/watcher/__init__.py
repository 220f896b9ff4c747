"""Watcher subsystem for dirwatch."""
from .loop import EventLoop
from .registrar import TreeRegistrar
from .registry import WatchRegistry
from .sink import CollectingReportSink, LoggingReportSink, Milestone, ReportSink
from .source import InotifySource, ManualSource, NotificationSource, default_source_factory
from .types import ChangeEvent, EventKind, LoopExit, RawEvent

__all__ = [
    "ChangeEvent",
    "CollectingReportSink",
    "EventKind",
    "EventLoop",
    "InotifySource",
    "LoggingReportSink",
    "LoopExit",
    "ManualSource",
    "Milestone",
    "NotificationSource",
    "RawEvent",
    "ReportSink",
    "TreeRegistrar",
    "WatchRegistry",
    "default_source_factory",
]
