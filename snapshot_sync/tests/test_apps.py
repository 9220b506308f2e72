"""Tests for scheduler autostart in the app config."""

from unittest.mock import patch

from django.apps import apps
from django.test import SimpleTestCase, override_settings

from snapshot_sync.apps import is_serving_process


class ServingProcessTests(SimpleTestCase):
    def test_reloader_parent_is_not_serving(self):
        self.assertFalse(is_serving_process(["manage.py", "runserver"], {}))

    def test_reloader_child_is_serving(self):
        self.assertTrue(is_serving_process(["manage.py", "runserver"], {"RUN_MAIN": "true"}))

    def test_noreload_is_serving(self):
        self.assertTrue(is_serving_process(["manage.py", "runserver", "--noreload"], {}))

    def test_other_commands(self):
        self.assertFalse(is_serving_process(["manage.py", "migrate"], {"RUN_MAIN": "true"}))


@override_settings(SNAPSHOT_SCHEDULER_AUTOSTART=True)
class AutostartTests(SimpleTestCase):
    def setUp(self):
        self.app_config = apps.get_app_config("snapshot_sync")

    @patch("snapshot_sync.scheduler.start_default_scheduler")
    def test_starts_once_in_serving_child(self, mock_start):
        with patch("sys.argv", ["manage.py", "runserver"]), patch.dict("os.environ", {"RUN_MAIN": "true"}):
            self.app_config.ready()

        mock_start.assert_called_once_with()

    @patch("snapshot_sync.scheduler.start_default_scheduler")
    def test_not_started_in_reloader_parent(self, mock_start):
        with patch("sys.argv", ["manage.py", "runserver"]), patch.dict("os.environ", {"RUN_MAIN": ""}):
            self.app_config.ready()

        mock_start.assert_not_called()

    @override_settings(SNAPSHOT_SCHEDULER_AUTOSTART=False)
    @patch("snapshot_sync.scheduler.start_default_scheduler")
    def test_disabled_by_setting(self, mock_start):
        with patch("sys.argv", ["manage.py", "runserver", "--noreload"]):
            self.app_config.ready()

        mock_start.assert_not_called()
