"""Tests for the preference store."""

import json
import os
import stat
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from django.test import SimpleTestCase, override_settings

from snapshot_sync.preferences import (
    Config,
    PreferenceStore,
    PreferencesError,
    PreferencesFileError,
    get_store,
)


class PreferenceStoreTests(SimpleTestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.preferences_file = Path(self.temp_dir) / "preferences.json"
        self.store = PreferenceStore(self.preferences_file)

    def tearDown(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_file_gives_defaults(self):
        config = self.store.load()

        self.assertEqual(config, Config())
        self.assertFalse(config.has_token)
        self.assertFalse(config.has_snapshot)
        self.assertEqual(config.interval, "hourly")

    def test_update_and_load(self):
        last_backup = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

        self.store.update(
            token="ghp_abc",
            snapshot_id="gist123",
            auto_backup_enabled=True,
            interval="daily",
            last_backup_at=last_backup,
        )
        config = self.store.load()

        self.assertEqual(config.token, "ghp_abc")
        self.assertEqual(config.snapshot_id, "gist123")
        self.assertTrue(config.auto_backup_enabled)
        self.assertEqual(config.interval, "daily")
        self.assertEqual(config.last_backup_at, last_backup)

    def test_update_keeps_other_keys(self):
        self.store.update(token="ghp_abc", auto_backup_enabled=True)

        self.store.update(snapshot_id="gist123")

        config = self.store.load()
        self.assertEqual(config.token, "ghp_abc")
        self.assertTrue(config.auto_backup_enabled)

    def test_update_preserves_unrelated_file_entries(self):
        self.preferences_file.write_text(json.dumps({"theme": "dark"}))

        self.store.update(token="ghp_abc")

        data = json.loads(self.preferences_file.read_text())
        self.assertEqual(data["theme"], "dark")
        self.assertEqual(data["token"], "ghp_abc")

    def test_reads_are_not_cached(self):
        other = PreferenceStore(self.preferences_file)

        self.store.update(snapshot_id="gist1")
        self.assertEqual(other.load().snapshot_id, "gist1")

        other.update(snapshot_id="gist2")
        self.assertEqual(self.store.load().snapshot_id, "gist2")

    def test_unknown_key_rejected(self):
        with self.assertRaises(PreferencesError):
            self.store.update(colour="blue")

    def test_file_permissions(self):
        self.store.update(token="ghp_abc")

        mode = os.stat(self.preferences_file).st_mode
        self.assertEqual(stat.S_IMODE(mode), 0o600)

    def test_no_temp_files_left(self):
        self.store.update(token="ghp_abc")

        leftovers = [p for p in Path(self.temp_dir).iterdir() if p.name.startswith(".preferences_")]
        self.assertEqual(leftovers, [])

    def test_invalid_json(self):
        self.preferences_file.write_text("{not json")

        with self.assertRaises(PreferencesFileError):
            self.store.load()

    def test_non_object_json(self):
        self.preferences_file.write_text("[1, 2]")

        with self.assertRaises(PreferencesFileError):
            self.store.load()

    def test_invalid_last_backup_ignored(self):
        self.preferences_file.write_text(json.dumps({"last_backup_at": "yesterday"}))

        self.assertIsNone(self.store.load().last_backup_at)

    def test_hand_edited_boolean_strings(self):
        self.preferences_file.write_text(json.dumps({"auto_backup_enabled": "false"}))
        self.assertFalse(self.store.load().auto_backup_enabled)

        self.preferences_file.write_text(json.dumps({"auto_backup_enabled": "True"}))
        self.assertTrue(self.store.load().auto_backup_enabled)

    def test_unparseable_boolean_rejected(self):
        self.preferences_file.write_text(json.dumps({"auto_backup_enabled": "sometimes"}))

        with self.assertRaises(PreferencesFileError):
            self.store.load()

    def test_update_repairs_bad_boolean(self):
        self.preferences_file.write_text(json.dumps({"auto_backup_enabled": "sometimes", "token": "t"}))

        config = self.store.update(auto_backup_enabled=False)

        self.assertFalse(config.auto_backup_enabled)
        self.assertEqual(self.store.load().token, "t")

    def test_update_if_applies_when_condition_holds(self):
        self.store.update(snapshot_id="gist1")

        config = self.store.update_if(lambda current: current.has_snapshot, token="ghp_new")

        self.assertEqual(config.token, "ghp_new")
        self.assertEqual(self.store.load().token, "ghp_new")

    def test_update_if_skips_when_condition_fails(self):
        self.store.update(token="ghp_old")

        result = self.store.update_if(lambda current: current.has_snapshot, token="ghp_new")

        self.assertIsNone(result)
        self.assertEqual(self.store.load().token, "ghp_old")

    def test_next_due_at(self):
        last = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

        self.assertIsNone(Config().next_due_at())
        self.assertEqual(
            Config(interval="daily", last_backup_at=last).next_due_at(),
            last + timedelta(days=1),
        )
        self.assertEqual(
            Config(interval="daily", last_backup_at=last, next_backup_at=last + timedelta(days=3)).next_due_at(),
            last + timedelta(days=3),
        )


class IntervalTests(SimpleTestCase):
    def test_known_intervals(self):
        self.assertEqual(Config(interval="hourly").interval_timedelta(), timedelta(hours=1))
        self.assertEqual(Config(interval="every_6_hours").interval_timedelta(), timedelta(hours=6))
        self.assertEqual(Config(interval="weekly").interval_timedelta(), timedelta(weeks=1))

    def test_unknown_interval_uses_fallback(self):
        config = Config(interval="fortnightly")

        self.assertEqual(config.interval_timedelta(timedelta(minutes=5)), timedelta(minutes=5))

    @override_settings(SNAPSHOT_FALLBACK_INTERVAL_SECONDS=120)
    def test_fallback_from_settings(self):
        self.assertEqual(Config(interval="").interval_timedelta(), timedelta(seconds=120))


class GetStoreTests(SimpleTestCase):
    def test_same_store_per_path(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "preferences.json"
            with override_settings(SNAPSHOT_PREFERENCES_FILE=path):
                self.assertIs(get_store(), get_store())
                self.assertEqual(get_store().path, path)
