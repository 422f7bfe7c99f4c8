from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

GAMES_URL = reverse("game-list")
GENRES_URL = reverse("game-genres")
PLATFORMS_URL = reverse("game-platforms")


def game_detail_url(game_id):
    return reverse("game-detail", kwargs={"game_id": game_id})


def fake_response(status_code=200, payload=None):
    """Build a requests.Response the way the RAWG API would answer."""
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Client Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


@override_settings(
    RAWG_API_KEY="test-key",
    RAWG_BASE_URL="https://rawg.test/api",
    RAWG_TIMEOUT=3.0,
)
@mock.patch("games.client.requests.get")
class GamesProxyTests(TestCase):
    """The games endpoints forward to RAWG without exposing the API key."""

    def setUp(self):
        self.client = APIClient()

    def test_list_passes_query_and_key(self, mock_get):
        mock_get.return_value = fake_response(payload={"count": 1, "results": [{"id": 3498}]})

        res = self.client.get(GAMES_URL, {"search": "gta", "page_size": 5})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["results"], [{"id": 3498}])
        mock_get.assert_called_once_with(
            "https://rawg.test/api/games",
            params={"search": "gta", "page_size": "5", "key": "test-key"},
            timeout=3.0,
        )

    def test_client_cannot_override_key(self, mock_get):
        mock_get.return_value = fake_response(payload={})
        self.client.get(GAMES_URL, {"key": "stolen"})

        self.assertEqual(mock_get.call_args.kwargs["params"]["key"], "test-key")

    def test_detail_genres_platforms(self, mock_get):
        mock_get.return_value = fake_response(payload={"results": []})

        self.client.get(game_detail_url(3498))
        self.client.get(GENRES_URL)
        self.client.get(PLATFORMS_URL)

        urls = [c.args[0] for c in mock_get.call_args_list]
        self.assertEqual(
            urls,
            [
                "https://rawg.test/api/games/3498",
                "https://rawg.test/api/genres",
                "https://rawg.test/api/platforms",
            ],
        )

    def test_upstream_error_status_is_mirrored(self, mock_get):
        """Test an upstream 404 comes back as 404 with the RAWG detail message."""
        mock_get.return_value = fake_response(404, {"detail": "Not found."})

        res = self.client.get(game_detail_url(1))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(
            res.json(), {"error": "RAWG API error", "message": "Not found.", "status": 404}
        )

    def test_upstream_error_without_detail(self, mock_get):
        response = fake_response(502)
        response.json.side_effect = ValueError("no json")
        mock_get.return_value = response

        res = self.client.get(GAMES_URL)

        self.assertEqual(res.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(res.json()["message"], "502 Client Error")

    def test_network_error_is_503(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        res = self.client.get(GAMES_URL)

        self.assertEqual(res.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(res.json()["error"], "Network error")
        self.assertEqual(res.json()["message"], "Unable to reach RAWG API")

    def test_timeout_is_503(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()

        res = self.client.get(GENRES_URL)
        self.assertEqual(res.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
