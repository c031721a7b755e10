"""
Spotify Web API adapter - the track recommendation provider.
"""

from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import requests

from config.app_config import RecommenderConfig
from infrastructure.monitoring.logging_service import get_logger
from services.mood_service.exceptions import RecommenderFailed
from services.mood_service.models import TrackReference


MAX_SEED_GENRES = 5  # Spotify rejects more seeds
TRACK_URL = "https://open.spotify.com/track/{track_id}"


def validate_spotify_url(url: str) -> str:
    """
    Check that a URL points at Spotify

    Raises:
        ValueError: If the URL is malformed or not a spotify.com URL
    """
    parsed = urlparse(url or "")
    if not parsed.scheme or not parsed.hostname:
        raise ValueError("Invalid URL format")
    if parsed.hostname != "spotify.com" and not parsed.hostname.endswith(".spotify.com"):
        raise ValueError("Not a valid Spotify URL")
    return url


class SpotifyRecommender:
    """
    Fetches track recommendations for seed genres.

    Failed calls are retried in a bounded loop without backoff; an expired
    token (HTTP 401) is exchanged through ``token_refresher`` before retrying.
    """

    def __init__(
        self,
        api_base: str = "https://api.spotify.com/v1",
        limit: int = 50,
        max_attempts: int = 2,
        timeout: float = 10.0,
        token_refresher: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[requests.Session] = None
    ):
        self.logger = get_logger(__name__)
        self.api_base = api_base.rstrip("/")
        self.limit = limit
        self.max_attempts = max(1, max_attempts)
        self.timeout = timeout
        self.token_refresher = token_refresher
        self.session = session or requests.Session()

    @classmethod
    def from_config(
        cls,
        recommender_config: RecommenderConfig,
        token_refresher: Optional[Callable[[], Optional[str]]] = None
    ) -> 'SpotifyRecommender':
        return cls(
            api_base=recommender_config.api_base,
            limit=recommender_config.limit,
            max_attempts=recommender_config.max_attempts,
            timeout=recommender_config.timeout,
            token_refresher=token_refresher
        )

    def get_recommendations(self, auth_token: str, genres: List[str]) -> List[TrackReference]:
        """
        Get recommended tracks for the given genres

        Args:
            auth_token: Spotify access token
            genres: Seed genres (the first five are used)

        Returns:
            Ordered list of TrackReference

        Raises:
            RecommenderFailed: If no usable response was obtained
        """
        if not auth_token:
            raise RecommenderFailed("Access token is required for recommendations")

        seeds = list(genres)[:MAX_SEED_GENRES]
        if not seeds:
            raise RecommenderFailed("At least one seed genre is required")

        token = auth_token
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.session.get(
                    f"{self.api_base}/recommendations",
                    headers={"Authorization": f"Bearer {token}"},
                    params={"seed_genres": ",".join(seeds), "limit": self.limit},
                    timeout=self.timeout
                )
            except requests.RequestException as e:
                last_error = e
                self.logger.warning(f"Spotify request attempt {attempt}/{self.max_attempts} failed: {e}")
                continue

            if response.status_code == 401:
                self.logger.info("Spotify token expired, attempting refresh")
                last_error = RecommenderFailed("Spotify access token expired")
                token = self.token_refresher() if self.token_refresher else None
                if not token:
                    raise RecommenderFailed("Unable to refresh token") from last_error
                continue

            if response.status_code == 429 or response.status_code >= 500:
                last_error = RecommenderFailed(f"Spotify returned HTTP {response.status_code}")
                self.logger.warning(f"Spotify request attempt {attempt}/{self.max_attempts} failed: HTTP {response.status_code}")
                continue

            if response.status_code >= 400:
                raise RecommenderFailed(f"Spotify rejected the request: HTTP {response.status_code}")

            tracks = self._parse_tracks(response)
            self.logger.info(f"Recommendations received: {len(tracks)}")
            return tracks

        raise RecommenderFailed(
            f"Spotify recommendations failed after {self.max_attempts} attempts: {last_error}"
        ) from last_error

    def _parse_tracks(self, response: requests.Response) -> List[TrackReference]:
        try:
            body = response.json()
        except ValueError as e:
            raise RecommenderFailed("Invalid response format from Spotify") from e

        tracks = body.get("tracks") if isinstance(body, dict) else None
        if not isinstance(tracks, list):
            raise RecommenderFailed("Invalid response format from Spotify")

        return [self._to_track_reference(track) for track in tracks if isinstance(track, dict) and track.get("id")]

    @staticmethod
    def _to_track_reference(track: Dict[str, Any]) -> TrackReference:
        default_url = TRACK_URL.format(track_id=track["id"])
        external_urls = track.get("external_urls") or {}
        external_url = external_urls.get("spotify") if isinstance(external_urls, dict) else None
        try:
            external_url = validate_spotify_url(external_url) if external_url else default_url
        except ValueError:
            external_url = default_url

        return TrackReference(
            id=track["id"],
            name=track.get("name", ""),
            artist_names=[artist.get("name", "") for artist in track.get("artists") or [] if isinstance(artist, dict)],
            play_uri=track.get("uri", ""),
            preview_url=track.get("preview_url"),
            external_url=external_url
        )
