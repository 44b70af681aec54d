"""Raw Fragment: the input unit handed over by the data-retrieval layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..signal_types import RelevanceTier, SourceType

REMOVED_BODY_MARKERS = frozenset({"[removed]", "[deleted]"})


class RawFragment(BaseModel):
    """One review, post or comment plus light numeric metadata.

    Immutable. Field names serialize in camelCase (``engagementRaw``,
    ``createdAt``) and both spellings are accepted on input.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    text: str = Field(
        ...,
        description="Body text; may be empty",
    )
    title: Optional[str] = Field(
        None,
        description="Post or review title, when the source has one",
    )
    source: SourceType = Field(
        SourceType.FORUM_POST,
        description="Kind of platform the fragment came from",
    )
    engagement_raw: int = Field(
        0,
        ge=0,
        description="Platform-specific upvotes / likes / helpful votes",
    )
    comment_count: int = Field(
        0,
        ge=0,
        description="Number of replies",
    )
    created_at: Optional[datetime] = Field(
        None,
        description="Creation time; absent means unknown age",
    )
    rating: Optional[int] = Field(
        None,
        ge=1,
        le=5,
        description="Star rating for review sources",
    )

    # ── Carried through unchanged ────────────────────────────────────────
    id: Optional[str] = Field(None, description="Platform identifier")
    community: Optional[str] = Field(
        None,
        description="Subreddit, app store, forum or site the fragment belongs to",
    )
    url: Optional[str] = Field(None, description="Canonical URL")
    author: Optional[str] = None
    tier: Optional[RelevanceTier] = Field(
        None,
        description="Upstream relevance to the analysis subject",
    )

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def body_removed(self) -> bool:
        return self.text.strip().lower() in REMOVED_BODY_MARKERS or not self.text.strip()

    @property
    def is_title_only(self) -> bool:
        """True when only the title carries text worth scoring."""
        return self.body_removed and bool(self.title and self.title.strip())

    def scoring_text(self) -> str:
        """Text the lexical scorer sees."""
        if self.is_title_only:
            return self.title.strip()
        if self.body_removed:
            return ""
        if self.title and self.title.strip():
            return f"{self.title.strip()} {self.text.strip()}"
        return self.text.strip()
