"""
Tests for the Spotify recommendation adapter
"""

import pytest
import requests
from unittest.mock import Mock

from config.app_config import RecommenderConfig
from infrastructure.external.spotify_client import SpotifyRecommender, validate_spotify_url
from services.mood_service.exceptions import RecommenderFailed


TRACKS_BODY = {
    "tracks": [
        {
            "id": "t1",
            "name": "Walking on Sunshine",
            "artists": [{"name": "Katrina and the Waves"}],
            "uri": "spotify:track:t1",
            "preview_url": "https://p.scdn.co/mp3-preview/t1",
            "external_urls": {"spotify": "https://open.spotify.com/track/t1"},
        },
        {
            "id": "t2",
            "name": "Untitled",
            "artists": [],
            "uri": "spotify:track:t2",
        },
    ]
}


def make_response(status_code: int, body=None) -> Mock:
    response = Mock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


class TestSpotifyRecommender:
    """Test recommendation requests against a mocked HTTP session"""

    def setup_method(self):
        self.session = Mock()
        self.refresher = Mock(return_value="fresh-token")
        self.recommender = SpotifyRecommender(
            api_base="https://api.spotify.com/v1/",
            limit=50,
            max_attempts=2,
            token_refresher=self.refresher,
            session=self.session
        )

    def test_maps_tracks(self):
        """Test track payloads become references"""
        self.session.get.return_value = make_response(200, TRACKS_BODY)

        tracks = self.recommender.get_recommendations("token", ["pop", "dance"])

        assert [track.id for track in tracks] == ["t1", "t2"]
        assert tracks[0].artist_names == ["Katrina and the Waves"]
        assert tracks[0].play_uri == "spotify:track:t1"
        assert tracks[0].preview_url == "https://p.scdn.co/mp3-preview/t1"
        assert tracks[1].preview_url is None
        assert tracks[1].external_url == "https://open.spotify.com/track/t2"

    @pytest.mark.parametrize("url", ["https://evil-spotify.com/track/t3", "javascript:alert(1)", "not a url"])
    def test_foreign_external_url_replaced(self, url):
        """Test external links that do not point at Spotify are not passed on"""
        body = {"tracks": [{"id": "t3", "name": "Odd Link", "external_urls": {"spotify": url}}]}
        self.session.get.return_value = make_response(200, body)

        tracks = self.recommender.get_recommendations("token", ["indie"])

        assert tracks[0].external_url == "https://open.spotify.com/track/t3"

    def test_request_shape(self):
        """Test seeds, limit and auth header"""
        self.session.get.return_value = make_response(200, {"tracks": []})

        self.recommender.get_recommendations("token", ["pop", "dance", "chill", "jazz", "indie", "sad"])

        args, kwargs = self.session.get.call_args
        assert args[0] == "https://api.spotify.com/v1/recommendations"
        assert kwargs["headers"] == {"Authorization": "Bearer token"}
        assert kwargs["params"] == {"seed_genres": "pop,dance,chill,jazz,indie", "limit": 50}

    def test_expired_token_refreshed(self):
        """Test a 401 refreshes the token and retries"""
        self.session.get.side_effect = [make_response(401), make_response(200, TRACKS_BODY)]

        tracks = self.recommender.get_recommendations("stale-token", ["pop"])

        assert len(tracks) == 2
        self.refresher.assert_called_once()
        assert self.session.get.call_args.kwargs["headers"] == {"Authorization": "Bearer fresh-token"}

    def test_expired_token_without_refresh(self):
        recommender = SpotifyRecommender(session=self.session)
        self.session.get.return_value = make_response(401)

        with pytest.raises(RecommenderFailed, match="Unable to refresh token"):
            recommender.get_recommendations("stale-token", ["pop"])

        self.session.get.assert_called_once()

    def test_server_errors_exhaust_attempts(self):
        """Test the loop is bounded"""
        self.session.get.return_value = make_response(503)

        with pytest.raises(RecommenderFailed, match="after 2 attempts"):
            self.recommender.get_recommendations("token", ["pop"])

        assert self.session.get.call_count == 2

    def test_transport_error_retried(self):
        self.session.get.side_effect = [requests.ConnectionError("reset"), make_response(200, TRACKS_BODY)]

        tracks = self.recommender.get_recommendations("token", ["pop"])

        assert len(tracks) == 2

    def test_client_error_not_retried(self):
        self.session.get.return_value = make_response(400)

        with pytest.raises(RecommenderFailed, match="HTTP 400"):
            self.recommender.get_recommendations("token", ["pop"])

        self.session.get.assert_called_once()

    @pytest.mark.parametrize("body", [ValueError("not json"), {"items": []}, ["tracks"]])
    def test_malformed_body(self, body):
        self.session.get.return_value = make_response(200, body)

        with pytest.raises(RecommenderFailed, match="Invalid response format"):
            self.recommender.get_recommendations("token", ["pop"])

    def test_requires_token_and_seeds(self):
        with pytest.raises(RecommenderFailed):
            self.recommender.get_recommendations("", ["pop"])
        with pytest.raises(RecommenderFailed):
            self.recommender.get_recommendations("token", [])

        self.session.get.assert_not_called()

    def test_from_config(self):
        recommender = SpotifyRecommender.from_config(RecommenderConfig(limit=20, max_attempts=3))

        assert recommender.limit == 20
        assert recommender.max_attempts == 3
        assert recommender.api_base == "https://api.spotify.com/v1"


class TestValidateSpotifyUrl:
    """Test Spotify URL validation"""

    @pytest.mark.parametrize("url", [
        "https://open.spotify.com/track/t1",
        "https://spotify.com/",
    ])
    def test_accepts_spotify_urls(self, url):
        assert validate_spotify_url(url) == url

    def test_rejects_other_hosts(self):
        with pytest.raises(ValueError, match="Not a valid Spotify URL"):
            validate_spotify_url("https://evil-spotify.com/track/t1")

    @pytest.mark.parametrize("url", ["", "not a url", None])
    def test_rejects_malformed(self, url):
        with pytest.raises(ValueError, match="Invalid URL format"):
            validate_spotify_url(url)
