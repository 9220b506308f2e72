"""Tests for the GitHub Gist provider."""

from unittest.mock import MagicMock

import requests
from django.test import SimpleTestCase, override_settings

from snapshot_sync.providers.github_gist import (
    GistClient,
    NetworkError,
    RemoteApiError,
    RemoteSnapshot,
)


def _response(status_code=200, data=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = data
    return response


GIST_DATA = {
    "id": "abc123",
    "html_url": "https://gist.github.com/abc123",
    "description": "Linkora Backup",
    "files": {
        "linkora_backup.json": {"filename": "linkora_backup.json", "content": '{"links": []}'},
    },
}


class RemoteSnapshotTests(SimpleTestCase):
    def test_from_api_response(self):
        snapshot = RemoteSnapshot.from_api_response(GIST_DATA)

        self.assertEqual(snapshot.id, "abc123")
        self.assertEqual(snapshot.html_url, "https://gist.github.com/abc123")
        self.assertEqual(snapshot.description, "Linkora Backup")
        name, first = snapshot.first_file
        self.assertEqual(name, "linkora_backup.json")
        self.assertEqual(first.content, '{"links": []}')

    def test_no_files(self):
        snapshot = RemoteSnapshot.from_api_response({"id": "abc123", "files": {}})

        self.assertIsNone(snapshot.first_file)

    def test_missing_id(self):
        with self.assertRaises(RemoteApiError):
            RemoteSnapshot.from_api_response({"files": {}})


class GistClientTests(SimpleTestCase):
    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.client = GistClient(session=self.session, api_url="https://api.github.test/", timeout=5)

    def test_get_snapshot(self):
        self.session.request.return_value = _response(data=GIST_DATA)

        snapshot = self.client.get_snapshot("ghp_token", "abc123")

        self.assertEqual(snapshot.id, "abc123")
        self.session.request.assert_called_once()
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "https://api.github.test/gists/abc123"))
        self.assertIsNone(kwargs["json"])
        self.assertEqual(kwargs["timeout"], 5.0)

    def test_truncated_file_fetched_from_raw_url(self):
        full_content = '{"links": [' + ", ".join(['"https://example.com"'] * 3) + "]}"
        truncated = {
            "id": "abc123",
            "files": {
                "linkora_backup.json": {
                    "content": full_content[:12],
                    "truncated": True,
                    "raw_url": "https://gist.githubusercontent.test/raw/linkora_backup.json",
                },
            },
        }
        raw_response = _response()
        raw_response.text = full_content
        self.session.request.side_effect = [_response(data=truncated), raw_response]

        snapshot = self.client.get_snapshot("ghp_token", "abc123")

        name, first = snapshot.first_file
        self.assertEqual(first.content, full_content)
        self.assertFalse(first.truncated)
        self.assertEqual(self.session.request.call_count, 2)
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "https://gist.githubusercontent.test/raw/linkora_backup.json"))
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer ghp_token")
        self.assertEqual(kwargs["timeout"], 5.0)

    def test_truncated_file_without_raw_url(self):
        truncated = {
            "id": "abc123",
            "files": {"linkora_backup.json": {"content": '{"li', "truncated": True}},
        }
        self.session.request.return_value = _response(data=truncated)

        with self.assertRaises(RemoteApiError):
            self.client.get_snapshot("ghp_token", "abc123")

    def test_raw_url_http_error(self):
        truncated = {
            "id": "abc123",
            "files": {
                "linkora_backup.json": {
                    "content": '{"li',
                    "truncated": True,
                    "raw_url": "https://gist.githubusercontent.test/raw/linkora_backup.json",
                },
            },
        }
        self.session.request.side_effect = [_response(data=truncated), _response(status_code=404)]

        with self.assertRaises(RemoteApiError) as ctx:
            self.client.get_snapshot("ghp_token", "abc123")

        self.assertEqual(ctx.exception.status_code, 404)

    def test_headers(self):
        self.session.request.return_value = _response(data=GIST_DATA)

        self.client.get_snapshot("ghp_token", "abc123")

        headers = self.session.request.call_args.kwargs["headers"]
        self.assertEqual(headers["Authorization"], "Bearer ghp_token")
        self.assertEqual(headers["Accept"], "application/vnd.github+json")
        self.assertEqual(headers["X-GitHub-Api-Version"], "2022-11-28")
        self.assertEqual(headers["Content-Type"], "application/json")

    def test_create_snapshot(self):
        self.session.request.return_value = _response(status_code=201, data=GIST_DATA)

        snapshot = self.client.create_snapshot(
            "ghp_token", "Linkora Backup", "linkora_backup.json", '{"links": []}'
        )

        self.assertEqual(snapshot.id, "abc123")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", "https://api.github.test/gists"))
        self.assertEqual(
            kwargs["json"],
            {
                "description": "Linkora Backup",
                "public": False,
                "files": {"linkora_backup.json": {"content": '{"links": []}'}},
            },
        )

    def test_update_snapshot(self):
        self.session.request.return_value = _response(data=GIST_DATA)

        self.client.update_snapshot("ghp_token", "abc123", "linkora_backup.json", "new content")

        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("PATCH", "https://api.github.test/gists/abc123"))
        self.assertEqual(kwargs["json"]["description"], "Updated by Linkora")
        self.assertFalse(kwargs["json"]["public"])
        self.assertEqual(
            kwargs["json"]["files"], {"linkora_backup.json": {"content": "new content"}}
        )

    def test_http_error(self):
        self.session.request.return_value = _response(status_code=401, data={"message": "Bad credentials"})

        with self.assertRaises(RemoteApiError) as ctx:
            self.client.get_snapshot("bad", "abc123")

        self.assertEqual(ctx.exception.status_code, 401)

    def test_network_error(self):
        self.session.request.side_effect = requests.ConnectionError("unreachable")

        with self.assertRaises(NetworkError):
            self.client.update_snapshot("ghp_token", "abc123", "f.json", "x")

    def test_invalid_json(self):
        self.session.request.return_value = _response(json_error=ValueError("not json"))

        with self.assertRaises(RemoteApiError):
            self.client.get_snapshot("ghp_token", "abc123")

    @override_settings(GITHUB_API_URL="https://ghe.example.com/api/v3", SNAPSHOT_HTTP_TIMEOUT=12)
    def test_defaults_from_settings(self):
        client = GistClient(session=self.session)

        self.assertEqual(client.api_url, "https://ghe.example.com/api/v3")
        self.assertEqual(client.timeout, 12.0)
