"""Build-history analyzer."""

from __future__ import annotations

from collections import Counter

from container_diff.models.image import LayerCommand, Snapshot
from container_diff.models.results import HistoryAnalyzeResult, HistoryDiffResult


def diverge(
    history1: list[LayerCommand],
    history2: list[LayerCommand],
) -> tuple[list[LayerCommand], list[LayerCommand]]:
    """Split two histories at their first differing command.

    After the longest common prefix, a command counts as removed or added
    only if it is unique to its side. Repeated commands are matched one
    for one, so a command present twice in one remainder and once in the
    other is reported once.

    Returns:
        (removed, added): commands unique to the remainder of ``history1``
        and of ``history2``, in original order
    """
    common = 0
    for first, second in zip(history1, history2):
        if first.command != second.command:
            break
        common += 1

    rest1 = history1[common:]
    rest2 = history2[common:]
    return _unmatched(rest1, rest2), _unmatched(rest2, rest1)


def _unmatched(commands: list[LayerCommand], other: list[LayerCommand]) -> list[LayerCommand]:
    """Commands of ``commands`` left over after pairing them with ``other``."""
    available = Counter(command.command for command in other)
    unmatched: list[LayerCommand] = []
    for command in commands:
        if available[command.command]:
            available[command.command] -= 1
        else:
            unmatched.append(command)
    return unmatched


class HistoryAnalyzer:
    """Reports and compares the instructions images were built from.

    Two images built from the same base share a prefix of instructions.
    After the first difference, instructions found on only one side are
    reported as removed or added; instructions both sides still share,
    such as a common CMD, are left out.
    """

    @property
    def name(self) -> str:
        return "history"

    @property
    def description(self) -> str:
        return "Build history of the image"

    def analyze(self, snapshot: Snapshot) -> HistoryAnalyzeResult:
        return HistoryAnalyzeResult(
            image=snapshot.image,
            analyzer=self.name,
            analysis=list(snapshot.history),
        )

    def diff(self, snapshot1: Snapshot, snapshot2: Snapshot) -> HistoryDiffResult:
        removed, added = diverge(snapshot1.history, snapshot2.history)
        return HistoryDiffResult(
            analyzer=self.name,
            image1=snapshot1.image,
            image2=snapshot2.image,
            added=added,
            removed=removed,
        )
