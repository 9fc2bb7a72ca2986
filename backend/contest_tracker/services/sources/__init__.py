"""Per-platform contest sources."""

import httpx

from contest_tracker.services.contest_store import ContestStore
from contest_tracker.services.sources.base import ContestPhases, SourceAdapter
from contest_tracker.services.sources.codechef import CodeChefSource
from contest_tracker.services.sources.codeforces import CodeforcesSource
from contest_tracker.services.sources.leetcode import LeetCodeSource

SOURCE_CLASSES: list[type[SourceAdapter]] = [CodeforcesSource, CodeChefSource, LeetCodeSource]


def build_sources(client: httpx.AsyncClient, store: ContestStore) -> list[SourceAdapter]:
    return [source_cls(client, store) for source_cls in SOURCE_CLASSES]


__all__ = [
    "ContestPhases",
    "SourceAdapter",
    "CodeforcesSource",
    "CodeChefSource",
    "LeetCodeSource",
    "SOURCE_CLASSES",
    "build_sources",
]
