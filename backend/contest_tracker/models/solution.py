"""
Solution models: video solutions attached to a contest, with vote tallies
Maps to: solutions table
"""

import re
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import field_validator
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from contest_tracker.models.contest import as_utc, utc_now

YOUTUBE_URL_PATTERN = re.compile(r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+$")
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class VideoLink(SQLModel):
    """One YouTube video inside a solution"""
    url: str
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    thumbnail: str = Field(min_length=1)

    @field_validator("url")
    @classmethod
    def validate_youtube_url(cls, value: str) -> str:
        value = value.strip()
        if not YOUTUBE_URL_PATTERN.match(value):
            raise ValueError(f"{value} is not a valid YouTube link")
        return value


# ============================================================================
# SOLUTION MODEL
# ============================================================================

class Solution(SQLModel, table=True):
    """Solution videos for a contest (at most one row per contest)"""
    __tablename__ = "solutions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    contest_id: UUID = Field(foreign_key="contests.id", unique=True, index=True)
    youtube_links: list[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    submitted_by: Optional[str] = Field(default=None, max_length=100)
    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    def has_video(self, url: str) -> bool:
        return any(link.get("url") == url for link in self.youtube_links)


# ============================================================================
# REQUEST/RESPONSE MODELS (Pydantic, not DB tables)
# ============================================================================

class Votes(SQLModel):
    upvotes: int
    downvotes: int


class SolutionResponse(SQLModel):
    """Solution response model"""
    id: UUID
    contest_id: UUID
    youtube_links: list[VideoLink]
    submitted_by: Optional[str] = None
    votes: Votes
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_solution(cls, solution: Solution) -> "SolutionResponse":
        return cls(
            id=solution.id,
            contest_id=solution.contest_id,
            youtube_links=[VideoLink.model_validate(link) for link in solution.youtube_links],
            submitted_by=solution.submitted_by,
            votes=Votes(upvotes=solution.upvotes, downvotes=solution.downvotes),
            created_at=solution.created_at,
            updated_at=solution.updated_at,
        )


class VoteRequest(SQLModel):
    """Vote on a solution"""
    vote_type: VoteType
