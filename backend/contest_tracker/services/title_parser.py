"""
Canonical contest identifiers.

Turns raw upstream contest names/codes and free-form video titles into the
slug stored as Contest.contest_id. Everything here is pure: no I/O, no clock.
"""

import re
from typing import Callable, Optional

from contest_tracker.models.contest import Platform

EDUCATIONAL_ROUND = re.compile(r"educational\s+codeforces\s+round\s+#?(\d+)", re.IGNORECASE)
CODEFORCES_ROUND = re.compile(r"codeforces\s+round\s+#?(\d+)", re.IGNORECASE)
DIVISION = re.compile(r"\(\s*div\.?\s*(\d+)(?:\s*\+\s*div\.?\s*(\d+))?\s*\)", re.IGNORECASE)

CODECHEF_PREFIX_LENGTH = 5  # "START170" -> "170"
VIDEO_TITLE_SEPARATOR = "|"


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, hyphenate whitespace runs."""
    cleaned = re.sub(r"[^\w\s]|_", "", text.lower())
    return re.sub(r"\s+", "-", cleaned.strip()).strip("-")


def _codeforces_id(title: str) -> str:
    educational = EDUCATIONAL_ROUND.search(title)
    if educational:
        return f"educational-codeforces-round-{educational.group(1)}"

    round_match = CODEFORCES_ROUND.search(title)
    if not round_match:
        return slugify(title)

    canonical = f"codeforces-round-{round_match.group(1)}"
    division = DIVISION.search(title)
    if division and division.group(2):
        # Combined rounds always normalize to the same suffix
        canonical += "-div-1-plus-2"
    elif division:
        canonical += f"-div-{division.group(1)}"
    return canonical


def _codechef_id(contest_code: str) -> str:
    code = contest_code.strip()
    return code[CODECHEF_PREFIX_LENGTH:] or code


def _leetcode_id(title_slug: str) -> str:
    return title_slug.strip()


CANONICAL_RULES: dict[Platform, Callable[[str], str]] = {
    Platform.CODEFORCES: _codeforces_id,
    Platform.CODECHEF: _codechef_id,
    Platform.LEETCODE: _leetcode_id,
}


def parse_canonical_id(raw_title: str, platform: Optional[Platform] = None) -> str:
    """
    Derive the canonical contest identifier for a platform.

    Codeforces (the default) parses the contest name, CodeChef strips the
    fixed-length series prefix from the contest code, LeetCode keeps the
    native slug. Names with no recognizable round fall back to a slug.
    """
    rule = CANONICAL_RULES[platform or Platform.CODEFORCES]
    return rule(raw_title)


# ============================================================================
# VIDEO TITLES
# ============================================================================

def video_seed(title: str) -> str:
    """Left segment of a video title, before the first separator."""
    return title.split(VIDEO_TITLE_SEPARATOR, 1)[0].strip().lower()


def _leetcode_video(seed: str) -> str:
    # "leetcode weekly contest 402" -> "weekly-contest-402"
    return "-".join(seed.split()[1:])


def _codechef_video(seed: str) -> str:
    # "codechef starters 170" -> "START170"
    words = seed.split()
    if len(words) < 3:
        return ""
    return "START" + words[2]


# Checked in order; the first keyword found in the seed decides the rule
VIDEO_RULES: list[tuple[str, Callable[[str], str]]] = [
    ("codeforces", _codeforces_id),
    ("leetcode", _leetcode_video),
    ("codechef", _codechef_video),
]


def parse_video_title(title: str) -> str:
    """Candidate contest identifier for a solution video, or "" when none can be derived."""
    seed = video_seed(title)
    if not seed:
        return ""
    for keyword, rule in VIDEO_RULES:
        if keyword in seed:
            return rule(seed)
    return _codeforces_id(seed)
