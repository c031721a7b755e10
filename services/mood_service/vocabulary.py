"""
Closed vocabularies for genres and weather moods, and mood-bucket audio attributes.
"""

from typing import Iterable, List, Optional

from services.mood_service.models import TargetAttributes


SPOTIFY_GENRES = (
    "pop",
    "dance",
    "hip-hop",
    "party",
    "electronic",
    "happy",
    "energetic",
    "upbeat",
    "summer",
    # mood-based genres
    "chill",
    "acoustic",
    "sad",
    "ambient",
    "melancholic",
    "jazz",
    "indie",
)

WEATHER_MOODS = (
    "clear sky",
    "broken clouds",
    "scattered clouds",
    "few clouds",
    "light rain",
    "moderate rain",
    "heavy rain",
    "overcast clouds",
)

DEFAULT_GENRE = "pop"
DEFAULT_WEATHER_MOOD = "clear sky"

# energy/valence/danceability in [0, 1], tempo in BPM
MOOD_ATTRIBUTES = {
    "sad": TargetAttributes(energy=0.3, valence=0.2, tempo=80, danceability=0.4),
    "relaxed": TargetAttributes(energy=0.4, valence=0.6, tempo=95, danceability=0.5),
    "happy": TargetAttributes(energy=0.8, valence=0.8, tempo=120, danceability=0.7),
}

NEUTRAL_ATTRIBUTES = TargetAttributes(energy=0.5, valence=0.5, tempo=120, danceability=0.5)

MOOD_KEYWORDS = {
    "sad": ("sad", "melancholic", "blue", "heartbroken", "lonely", "depressed", "crying"),
    "relaxed": ("relaxed", "relax", "chill", "calm", "mellow", "peaceful", "unwind", "sleepy"),
    "happy": ("happy", "upbeat", "excited", "dance", "party", "energetic", "joyful", "great"),
}


def is_valid_genre(genre: str) -> bool:
    return isinstance(genre, str) and genre.lower() in SPOTIFY_GENRES


def is_valid_weather_mood(weather_mood: str) -> bool:
    return isinstance(weather_mood, str) and weather_mood.lower() in WEATHER_MOODS


def filter_genres(genres: Iterable[str]) -> List[str]:
    """Keep vocabulary members only, lower-cased, in order, without duplicates"""
    valid = []
    for genre in genres or ():
        if not is_valid_genre(genre):
            continue
        tag = genre.lower()
        if tag not in valid:
            valid.append(tag)
    return valid


def get_mood_attributes(mood: Optional[str]) -> Optional[TargetAttributes]:
    """
    Look up target attributes for a mood bucket

    Args:
        mood: Bucket name such as "sad", "relaxed" or "happy"

    Returns:
        A copy of the bucket's attributes, or None when there is no hint for it
    """
    if not mood:
        return None
    attributes = MOOD_ATTRIBUTES.get(mood.strip().lower())
    return attributes.model_copy() if attributes is not None else None


def detect_mood_bucket(text: Optional[str]) -> Optional[str]:
    """Return the first mood bucket whose keywords occur in the text"""
    if not text:
        return None
    words = set(
        "".join(char if char.isalnum() else " " for char in text.lower()).split()
    )
    for bucket, keywords in MOOD_KEYWORDS.items():
        if words.intersection(keywords):
            return bucket
    return None
