"""CLI module for tailtrace - command-line interface utilities and commands."""

from .replay import (
    EchoExporter,
    group_by_invocation,
    read_events,
    replay_file,
)

__all__ = [
    "EchoExporter",
    "read_events",
    "group_by_invocation",
    "replay_file",
]
