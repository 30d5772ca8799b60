"""
Pydantic data models for the podcast configuration, episodes and the feed.

All models are frozen: a rebuild constructs them fresh from the filesystem
and discards them once both output documents are encoded.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


AUDIO_MIME_TYPE = "audio/mpeg"


class PodcastConfig(BaseModel):
    """
    Feed-level configuration written by the setup form.

    The document uses the keys ``Name``, ``Host``, ``Email``,
    ``Description``, ``Image`` and ``PodcastUrl``. Keys are matched without
    regard to case, so ``PodcastURL`` and ``podcasturl`` load the same field.
    Missing keys decode as empty strings; unknown keys are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(default="", alias="Name")
    host: str = Field(default="", alias="Host")
    email: str = Field(default="", alias="Email")
    description: str = Field(default="", alias="Description")
    image: str = Field(default="", alias="Image")
    podcast_url: str = Field(default="", alias="PodcastUrl")

    @model_validator(mode="before")
    @classmethod
    def fold_key_case(cls, data: Any) -> Any:
        """Map keys onto field aliases case-insensitively."""
        if not isinstance(data, dict):
            return data
        aliases = {
            (field.alias or name).lower(): field.alias or name
            for name, field in cls.model_fields.items()
        }
        aliases.update({name.lower(): name for name in cls.model_fields})
        folded: Dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            canonical = aliases.get(key.lower())
            if canonical is not None:
                folded[canonical] = value
        return folded


class Episode(BaseModel):
    """
    One published episode, derived from an audio file and its shownotes.

    Never persisted on its own; rebuilt from the directory snapshot on
    every rebuild.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    title: str
    pub_date: date
    size: int = Field(ge=0)
    description: str = ""
    link: str
    mime_type: str = AUDIO_MIME_TYPE

    @property
    def published(self) -> datetime:
        """Publish date as a timezone-aware datetime at midnight UTC."""
        return datetime.combine(self.pub_date, time.min, tzinfo=timezone.utc)


class Feed(BaseModel):
    """
    Show-level metadata plus the ordered episode entries.

    Episode order is the order the encoder emits them in.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    link: str
    description: str = ""
    author_name: str = ""
    author_email: str = ""
    created: datetime
    image: str = ""
    episodes: Tuple[Episode, ...] = ()
