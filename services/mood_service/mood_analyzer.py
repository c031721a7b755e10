"""
Mood analysis orchestrator - turns one user message into genre recommendations.

The oracle and the recommender are injected collaborators:

- oracle: any object with ``generate_json(prompt: str) -> str``
- recommender: any object with ``get_recommendations(auth_token, genres) -> List[TrackReference]``
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config.app_config import MoodConfig
from services.mood_service.conversation_memory import (
    acknowledge_in_context,
    coerce_context,
    merge_analysis_into_context,
)
from services.mood_service.exceptions import (
    InvalidRequest,
    OracleResponseInvalid,
    OracleUnavailable,
)
from services.mood_service.intent_classifier import classify_intent
from services.mood_service.models import (
    ConversationContext,
    MoodAnalysisResult,
    OracleAnalysis,
    TargetAttributes,
    TrackReference,
    UserIntent,
)
from services.mood_service.prompts import build_mood_prompt
from services.mood_service.response_synthesizer import synthesize_response
from services.mood_service.vocabulary import (
    DEFAULT_GENRE,
    DEFAULT_WEATHER_MOOD,
    NEUTRAL_ATTRIBUTES,
    detect_mood_bucket,
    filter_genres,
    get_mood_attributes,
    is_valid_genre,
    is_valid_weather_mood,
)
from infrastructure.monitoring.logging_service import (
    ORACLE_CALL,
    ORACLE_RESPONSE_VALIDATION,
    RECOMMENDATIONS,
    ErrorTracker,
    get_error_tracker,
    get_logger,
    log_execution_time,
    log_recommendation_event,
)


KEEPING_MOOD = "Keeping current mood"
ATTRIBUTE_FIELDS = ("energy", "valence", "tempo", "danceability")


@dataclass
class OracleParseResult:
    """Tagged outcome of oracle payload validation"""
    ok: bool
    analysis: Optional[OracleAnalysis] = None
    error: str = ""


def parse_oracle_payload(raw: Any) -> OracleParseResult:
    """
    Validate the oracle's raw output before any field is read

    Args:
        raw: JSON text returned by the oracle

    Returns:
        OracleParseResult with either the parsed analysis or the failure reason
    """
    if not isinstance(raw, str) or not raw.strip():
        return OracleParseResult(ok=False, error="Empty response from oracle")

    try:
        payload = json.loads(raw)
    except ValueError as e:
        # JSONDecodeError, or an integer literal past the conversion digit limit
        return OracleParseResult(ok=False, error=f"Oracle response is not valid JSON: {getattr(e, 'msg', e)}")

    if not isinstance(payload, dict):
        return OracleParseResult(ok=False, error="Oracle response is not a JSON object")

    try:
        analysis = OracleAnalysis.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        return OracleParseResult(ok=False, error=f"Oracle response failed validation: {', '.join(fields)}")

    return OracleParseResult(ok=True, analysis=analysis)


def build_display_title(genres: List[str]) -> str:
    return " & ".join(genre.title() for genre in genres[:2]) + " Mix"


class MoodAnalyzer:
    """
    Orchestrates a mood analysis turn: intent check, oracle call, validation,
    memory update and optional track recommendations.
    """

    def __init__(
        self,
        oracle,
        recommender=None,
        mood_config: Optional[MoodConfig] = None,
        error_tracker: Optional[ErrorTracker] = None
    ):
        """
        Initialize the analyzer

        Args:
            oracle: Text-generation oracle returning JSON text
            recommender: Optional recommendation provider
            mood_config: Defaults and intent policy
            error_tracker: Error counter; defaults to the shared tracker
        """
        self.logger = get_logger(__name__)
        self.error_tracker = error_tracker or get_error_tracker()
        self.oracle = oracle
        self.recommender = recommender
        self.mood_config = mood_config or MoodConfig()

        self.default_genre = self.mood_config.default_genre
        if not is_valid_genre(self.default_genre):
            self.logger.warning(f"Configured default genre '{self.default_genre}' is not in the vocabulary")
            self.default_genre = DEFAULT_GENRE

        self.default_weather_mood = self.mood_config.default_weather_mood
        if not is_valid_weather_mood(self.default_weather_mood):
            self.logger.warning(f"Configured default weather mood '{self.default_weather_mood}' is not in the vocabulary")
            self.default_weather_mood = DEFAULT_WEATHER_MOOD

    def analyze(
        self,
        message: str,
        prior_context: Any = None,
        auth_token: Optional[str] = None
    ) -> MoodAnalysisResult:
        """
        Analyze one user message

        Args:
            message: Raw user text
            prior_context: ConversationContext or its wire dict from the previous turn
            auth_token: Spotify access token; enables track recommendations

        Returns:
            MoodAnalysisResult for this turn

        Raises:
            InvalidRequest: If the message is empty
            OracleUnavailable: If the oracle could not be reached
            OracleResponseInvalid: If the oracle payload failed validation
        """
        if not isinstance(message, str) or not message.strip():
            raise InvalidRequest("Message is required")

        context = coerce_context(prior_context)
        intent = classify_intent(message, context, self.mood_config.refresh_on_neutral)

        if not intent.wants_new_recommendation and context is not None and context.current_playlist is not None:
            return self._keep_current_playlist(message, intent, context)

        raw = self._call_oracle(build_mood_prompt(message, context))

        parsed = parse_oracle_payload(raw)
        if not parsed.ok:
            error = OracleResponseInvalid(parsed.error)
            self.error_tracker.track_error(error, context=ORACLE_RESPONSE_VALIDATION)
            raise error
        analysis = parsed.analysis

        response = synthesize_response(intent, analysis.response, context)
        weather_mood = self._validate_weather_mood(analysis.weather_mood)
        genres = self._validate_genres(analysis.genres)
        display_title = analysis.display_title or build_display_title(genres)
        target_attributes = self._resolve_target_attributes(
            analysis.target_attributes, message, analysis.mood_analysis
        )

        new_context = merge_analysis_into_context(
            context, message, response, analysis.mood_analysis, genres, display_title
        )

        return MoodAnalysisResult(
            genres=genres,
            weather_mood=weather_mood,
            response=response,
            mood_analysis=analysis.mood_analysis,
            display_title=display_title,
            target_attributes=target_attributes,
            conversation_context=new_context,
            should_refresh_playlist=True,
            recommendations=self._fetch_recommendations(auth_token, genres),
        )

    def _keep_current_playlist(
        self,
        message: str,
        intent: UserIntent,
        context: ConversationContext
    ) -> MoodAnalysisResult:
        """Answer from the existing playlist without calling the oracle or recommender"""
        playlist = context.current_playlist
        genres = filter_genres(playlist.genres) or [self.default_genre]
        mood = context.user_preferences.mood or KEEPING_MOOD

        self.logger.info("Keeping current playlist; oracle not called", extra={
            "event_type": "playlist_kept",
            "genres": genres,
        })

        return MoodAnalysisResult(
            genres=genres,
            weather_mood=self.default_weather_mood,
            response=synthesize_response(intent, playlist.display_title, context),
            mood_analysis=mood,
            display_title=playlist.display_title or build_display_title(genres),
            target_attributes=get_mood_attributes(detect_mood_bucket(mood)) or NEUTRAL_ATTRIBUTES.model_copy(),
            conversation_context=acknowledge_in_context(context, message),
            should_refresh_playlist=False,
        )

    def _call_oracle(self, prompt: str) -> str:
        with log_execution_time(self.logger, "mood oracle call", prompt_chars=len(prompt)):
            try:
                return self.oracle.generate_json(prompt)
            except (OracleUnavailable, OracleResponseInvalid) as e:
                self.error_tracker.track_error(e, context=ORACLE_CALL)
                raise
            except Exception as e:
                self.error_tracker.track_error(e, context=ORACLE_CALL)
                raise OracleUnavailable(f"Mood oracle call failed: {e}") from e

    def _validate_weather_mood(self, weather_mood: str) -> str:
        if is_valid_weather_mood(weather_mood):
            return weather_mood.lower()
        self.logger.warning(f"Invalid weather mood '{weather_mood}', using '{self.default_weather_mood}'", extra={
            "event_type": "validation_repair",
            "field": "weatherMood",
        })
        return self.default_weather_mood

    def _validate_genres(self, genres: List[str]) -> List[str]:
        valid = filter_genres(genres)
        dropped = [genre for genre in genres if not is_valid_genre(genre)]
        if dropped:
            self.logger.warning(f"Dropped genres outside the vocabulary: {dropped}", extra={
                "event_type": "validation_repair",
                "field": "genres",
            })
        if not valid:
            return [self.default_genre]
        return valid

    def _resolve_target_attributes(
        self,
        raw: Optional[Dict[str, Any]],
        message: str,
        mood_analysis: str
    ) -> TargetAttributes:
        bucket = detect_mood_bucket(message) or detect_mood_bucket(mood_analysis)
        fallback = get_mood_attributes(bucket) or NEUTRAL_ATTRIBUTES.model_copy()
        if not raw:
            return fallback

        values = {}
        for field_name in ATTRIBUTE_FIELDS:
            try:
                value = float(raw[field_name])
            except (KeyError, TypeError, ValueError, OverflowError):
                value = None
            if value is None or not math.isfinite(value):
                value = getattr(fallback, field_name)
            values[field_name] = value
        return TargetAttributes(**values)

    def _fetch_recommendations(self, auth_token: Optional[str], genres: List[str]) -> Optional[List[TrackReference]]:
        if not auth_token or self.recommender is None:
            return None

        try:
            with log_execution_time(self.logger, "track recommendations", genres=genres):
                tracks = self.recommender.get_recommendations(auth_token, genres)
            tracks = [
                track if isinstance(track, TrackReference) else TrackReference.model_validate(track)
                for track in tracks
            ]
        except Exception as e:
            self.error_tracker.track_error(e, context=RECOMMENDATIONS)
            log_recommendation_event(self.logger, "failed", genres, error=e)
            return None

        log_recommendation_event(self.logger, "served", genres, track_count=len(tracks))
        return tracks
