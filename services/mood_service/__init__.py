"""
Mood service - intent classification, conversational memory and mood analysis.
"""

from .exceptions import (
    MoodAnalysisError,
    InvalidRequest,
    OracleUnavailable,
    OracleResponseInvalid,
    RecommenderFailed
)
from .models import (
    ConversationContext,
    ConversationMemory,
    CurrentPlaylist,
    MoodAnalysisResult,
    TargetAttributes,
    TrackReference,
    UserIntent,
    UserPreferences
)
from .intent_classifier import classify_intent
from .response_synthesizer import synthesize_response
from .mood_analyzer import MoodAnalyzer
from .fallback_service import FallbackService

__all__ = [
    'MoodAnalysisError',
    'InvalidRequest',
    'OracleUnavailable',
    'OracleResponseInvalid',
    'RecommenderFailed',
    'ConversationContext',
    'ConversationMemory',
    'CurrentPlaylist',
    'MoodAnalysisResult',
    'TargetAttributes',
    'TrackReference',
    'UserIntent',
    'UserPreferences',
    'classify_intent',
    'synthesize_response',
    'MoodAnalyzer',
    'FallbackService'
]
