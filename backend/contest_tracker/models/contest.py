"""
Contest models: Contest table plus the normalized shape shared by
source adapters, the upcoming-contest cache and the API.
"""

from datetime import datetime, UTC
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import field_validator
from sqlalchemy import JSON, Column, DateTime, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Timezone-aware UTC; naive values (SQLite reads) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ============================================================================
# ENUMS
# ============================================================================

class Platform(str, Enum):
    CODEFORCES = "Codeforces"
    CODECHEF = "CodeChef"
    LEETCODE = "LeetCode"


class ContestStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    PAST = "past"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_advance_to(self, other: "ContestStatus") -> bool:
        """Status only ever moves forward: upcoming -> ongoing -> past."""
        return other.rank > self.rank


_STATUS_ORDER = [ContestStatus.UPCOMING, ContestStatus.ONGOING, ContestStatus.PAST]


# ============================================================================
# NORMALIZED CONTEST (not a table)
# ============================================================================

class NormalizedContest(SQLModel):
    """Platform-independent contest record produced by every source adapter"""
    contest_id: str = Field(min_length=1)
    original_id: Optional[str] = None
    name: str = Field(min_length=1, max_length=200)
    platform: Platform
    start_time: datetime
    end_time: datetime
    duration: int = Field(ge=1)  # seconds
    url: Optional[str] = None
    status: ContestStatus = ContestStatus.UPCOMING

    @field_validator("start_time", "end_time")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def identity(self) -> tuple[str, str]:
        """Most specific upstream key: native id when the platform has one."""
        if self.original_id:
            return ("original_id", self.original_id)
        return ("contest_id", self.contest_id)


# ============================================================================
# CONTEST MODEL
# ============================================================================

class Contest(SQLModel, table=True):
    """Contest from one of the tracked platforms"""
    __tablename__ = "contests"
    __table_args__ = (
        UniqueConstraint("platform", "original_id", name="uq_contests_platform_original_id"),
        # Canonical ids only identify contests that have no native id (LeetCode)
        Index(
            "uq_contests_platform_contest_id",
            "platform",
            "contest_id",
            unique=True,
            sqlite_where=text("original_id IS NULL"),
            postgresql_where=text("original_id IS NULL"),
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    contest_id: str = Field(index=True, max_length=200)
    original_id: Optional[str] = Field(default=None, max_length=100)
    name: str = Field(max_length=200)
    platform: Platform = Field(index=True)
    url: Optional[str] = None
    start_time: datetime = Field(sa_type=DateTime(timezone=True), index=True)
    end_time: datetime = Field(sa_type=DateTime(timezone=True))
    duration: int = Field(ge=1)  # seconds
    status: ContestStatus = Field(default=ContestStatus.UPCOMING, index=True)
    solution_links: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    @classmethod
    def from_normalized(cls, contest: NormalizedContest) -> "Contest":
        return cls(**contest.model_dump())

    def to_normalized(self) -> NormalizedContest:
        return NormalizedContest(
            contest_id=self.contest_id,
            original_id=self.original_id,
            name=self.name,
            platform=self.platform,
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            url=self.url,
            status=self.status,
        )


# ============================================================================
# REQUEST/RESPONSE MODELS (Pydantic, not DB tables)
# ============================================================================

class ContestResponse(SQLModel):
    """Contest response model"""
    id: UUID
    contest_id: str
    original_id: Optional[str] = None
    name: str
    platform: Platform
    url: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration: int
    status: ContestStatus
    solution_links: list[str] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)
