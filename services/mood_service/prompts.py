"""
Prompt construction for the mood analysis oracle.
"""

import json
from typing import Optional

from services.mood_service.models import ConversationContext
from services.mood_service.vocabulary import SPOTIFY_GENRES, WEATHER_MOODS


NO_CONTEXT = "No previous context"

RESPONSE_SCHEMA = """{
  "genres": ["genre1", "genre2"],
  "weatherMood": "clear sky",
  "response": "your empathetic response",
  "moodAnalysis": "brief analysis of why these genres match their requested mood",
  "displayTitle": "Ambient & Chill Music for Late Night Drives",
  "targetAttributes": {
    "energy": 0.5,
    "valence": 0.5,
    "tempo": 120,
    "danceability": 0.5
  }
}"""


def serialize_context(context: Optional[ConversationContext]) -> str:
    if context is None:
        return NO_CONTEXT
    return json.dumps(context.to_wire(), ensure_ascii=False)


def build_mood_prompt(message: str, context: Optional[ConversationContext] = None) -> str:
    """
    Build the oracle prompt for one turn

    Args:
        message: Raw user message
        context: Prior conversational memory, serialized in full

    Returns:
        Prompt text requesting a JSON object
    """
    previous = serialize_context(context)
    genres = ", ".join(SPOTIFY_GENRES)
    weather_moods = ", ".join(WEATHER_MOODS)

    return f"""As a music expert and conversational AI, analyze this message: "{message}".
Previous context: {previous}

Focus on having a natural conversation while providing music recommendations.
- If the user seems satisfied, don't push for changes
- Acknowledge their current activity and mood
- Only offer to refresh if they seem unsatisfied

Your task is to understand and respect the user's specific mood and music preferences.
If they request sad or slow music, don't try to change their mood - provide appropriate recommendations.

Available genres: {genres}

Based on the user's mood and context, determine:
1. The most fitting musical genres that MATCH their requested mood (don't try to change it)
2. A weather description that reflects their emotional state
3. An empathetic response that acknowledges their mood
4. A descriptive title that combines the mood/activity with the recommended genres
5. Target audio attributes: energy, valence and danceability between 0 and 1, tempo in BPM
   (lower for sad or relaxed requests, higher for upbeat ones)

Respond with a single JSON object in this format:
{RESPONSE_SCHEMA}

IMPORTANT:
- Weather mood must be one of: {weather_moods}
- Genres must be from the provided list
- Respect user's mood preferences - don't try to make sad requests happy
- Create natural, descriptive titles that reflect both the mood/activities and music style"""
