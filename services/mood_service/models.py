"""
Mood service data models: conversational memory, oracle payloads and analysis results.

Wire shapes use camelCase keys (``model_dump(by_alias=True)``); models accept
either the camelCase alias or the Python field name on input.
"""

from dataclasses import dataclass
from typing import List, Dict, Optional, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


ENERGY_RANGE = (0.0, 1.0)
TEMPO_RANGE = (1.0, 250.0)


def _clamp(value: float, bounds: tuple) -> float:
    low, high = bounds
    return max(low, min(high, float(value)))


class WireModel(BaseModel):
    """Base model with camelCase aliases"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@dataclass(frozen=True)
class UserIntent:
    """Verdict of the intent classifier"""
    wants_new_recommendation: bool
    should_respond: bool = True


class TargetAttributes(WireModel):
    """Target audio attributes; values are clamped into their valid range"""
    energy: float
    valence: float
    tempo: float
    danceability: float

    @field_validator("energy", "valence", "danceability")
    @classmethod
    def _clamp_unit(cls, value: float) -> float:
        return _clamp(value, ENERGY_RANGE)

    @field_validator("tempo")
    @classmethod
    def _clamp_tempo(cls, value: float) -> float:
        return _clamp(value, TEMPO_RANGE)


class ConversationMemory(WireModel):
    """Nested per-conversation memory record"""
    has_declined_refresh: bool = False
    last_message: str = ""
    message_count: int = 0
    current_topic: Optional[str] = None
    brief_response: bool = False
    last_meaningful_response: str = ""


class UserPreferences(WireModel):
    location: Optional[str] = None
    activity: Optional[str] = None
    mood: Optional[str] = None
    preferred_genres: Optional[List[str]] = None
    memory: ConversationMemory = Field(default_factory=ConversationMemory)


class CurrentPlaylist(WireModel):
    genres: List[str] = Field(default_factory=list)
    display_title: str = ""
    created_at: Optional[str] = None


class ConversationContext(WireModel):
    """
    Conversational memory carried across turns by the caller.

    ``current_playlist`` is present if and only if ``playlist_generated`` is true.
    """
    playlist_generated: bool = False
    last_response: str = ""
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)
    current_playlist: Optional[CurrentPlaylist] = None

    @model_validator(mode="after")
    def _sync_playlist_flag(self) -> "ConversationContext":
        self.playlist_generated = self.current_playlist is not None
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class TrackReference(WireModel):
    """Concrete track returned by the recommendation provider"""
    id: str
    name: str
    artist_names: List[str] = Field(default_factory=list)
    play_uri: str = Field(default="", alias="playURI")
    preview_url: Optional[str] = Field(default=None, alias="previewURL")
    external_url: str = Field(default="", alias="externalURL")


class OracleAnalysis(WireModel):
    """
    Structured payload expected from the text-generation oracle.

    ``response`` and ``moodAnalysis`` are required; the remaining fields are
    repaired downstream, so malformed values degrade to empty defaults here.
    """
    response: str
    mood_analysis: str
    genres: List[str] = Field(default_factory=list)
    weather_mood: str = ""
    display_title: str = ""
    target_attributes: Optional[Dict[str, Any]] = None

    @field_validator("response", "mood_analysis", mode="before")
    @classmethod
    def _require_text(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("genres", mode="before")
    @classmethod
    def _coerce_genres(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, str)]

    @field_validator("weather_mood", "display_title", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("target_attributes", mode="before")
    @classmethod
    def _coerce_attributes(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None


class MoodAnalysisResult(WireModel):
    """Structured output of one mood analysis turn"""
    genres: List[str] = Field(min_length=1)
    weather_mood: str
    response: str
    mood_analysis: str
    display_title: str
    target_attributes: TargetAttributes
    conversation_context: ConversationContext
    should_refresh_playlist: bool = True
    recommendations: Optional[List[TrackReference]] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
