"""
Tests for vocabularies and mood attributes
"""

import pytest
from pydantic import ValidationError

from services.mood_service.models import TargetAttributes
from services.mood_service.vocabulary import (
    DEFAULT_GENRE,
    DEFAULT_WEATHER_MOOD,
    MOOD_ATTRIBUTES,
    SPOTIFY_GENRES,
    WEATHER_MOODS,
    detect_mood_bucket,
    filter_genres,
    get_mood_attributes,
    is_valid_genre,
    is_valid_weather_mood,
)


class TestVocabulary:
    """Test closed vocabularies"""

    def test_defaults_are_members(self):
        """Test fallback tags belong to their vocabularies"""
        assert DEFAULT_GENRE in SPOTIFY_GENRES
        assert DEFAULT_WEATHER_MOOD in WEATHER_MOODS

    def test_genre_validation(self):
        """Test genre membership checks"""
        assert is_valid_genre("jazz")
        assert is_valid_genre("Hip-Hop")
        assert not is_valid_genre("polka")
        assert not is_valid_genre(None)

    def test_weather_mood_validation(self):
        """Test weather mood membership checks"""
        assert is_valid_weather_mood("light rain")
        assert not is_valid_weather_mood("tornado")

    def test_filter_genres_keeps_order_and_drops_duplicates(self):
        """Test genre filtering"""
        genres = filter_genres(["Chill", "polka", "jazz", "chill", 7])

        assert genres == ["chill", "jazz"]

    def test_filter_genres_can_be_empty(self):
        """Test filtering out everything"""
        assert filter_genres(["not-a-real-genre"]) == []
        assert filter_genres(None) == []


class TestMoodAttributes:
    """Test mood bucket attribute lookup"""

    def test_known_buckets(self):
        """Test the documented buckets"""
        sad = get_mood_attributes("sad")

        assert sad.energy == 0.3
        assert sad.valence == 0.2
        assert sad.tempo == 80
        assert sad.danceability == 0.4
        assert get_mood_attributes("Happy").tempo == 120

    def test_unknown_bucket_is_no_hint(self):
        """Test missing keys return None rather than raising"""
        assert get_mood_attributes("furious") is None
        assert get_mood_attributes(None) is None

    def test_lookup_returns_copy(self):
        """Test callers cannot alter the shared table"""
        attributes = get_mood_attributes("relaxed")
        attributes.energy = 0.99

        assert MOOD_ATTRIBUTES["relaxed"].energy == 0.4

    def test_ranges_are_clamped(self):
        """Test attribute values are clamped into range"""
        attributes = TargetAttributes(energy=1.7, valence=-0.2, tempo=900, danceability=0.5)

        assert attributes.energy == 1.0
        assert attributes.valence == 0.0
        assert attributes.tempo == 250.0

    def test_non_numeric_attribute_rejected(self):
        """Test attribute values must be numbers"""
        with pytest.raises(ValidationError):
            TargetAttributes(energy="loud", valence=0.5, tempo=100, danceability=0.5)

    @pytest.mark.parametrize("text,bucket", [
        ("I feel so sad today", "sad"),
        ("Just want to relax and unwind", "relaxed"),
        ("I feel happy and want to dance", "happy"),
        ("Working on my taxes", None),
        ("", None),
    ])
    def test_detect_mood_bucket(self, text, bucket):
        """Test keyword-based bucket detection"""
        assert detect_mood_bucket(text) == bucket
