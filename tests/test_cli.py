# tests/test_cli.py
"""Tests for CLI commands."""

import json

import click
import pytest
from click.testing import CliRunner
from unittest.mock import patch

from curation.cli import cli, load_config
from curation.db import Database


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv('CURATION_ALLOWED_DOMAINS', raising=False)
    monkeypatch.delenv('CURATION_MAX_TAGS', raising=False)


class TestLoadConfig:
    """Test config loading and env overrides."""

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_config() == {}

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(click.ClickException, match="not found"):
            load_config(str(tmp_path / 'missing.yml'))

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / 'config.yml'
        path.write_text("tags:\n  max_tags: 4\n")
        assert load_config(str(path)) == {'tags': {'max_tags': 4}}

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'config.yml'
        path.write_text("")
        with pytest.raises(click.ClickException, match="empty"):
            load_config(str(path))

    @pytest.mark.parametrize('content', ["- housers.app\n- example.com\n", "just a string\n"])
    def test_non_mapping(self, tmp_path, content):
        path = tmp_path / 'config.yml'
        path.write_text(content)
        with pytest.raises(click.ClickException, match="must be a mapping"):
            load_config(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'config.yml'
        path.write_text("tags: [unclosed\n")
        with pytest.raises(click.ClickException, match="Invalid YAML"):
            load_config(str(path))

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv('CURATION_ALLOWED_DOMAINS', 'housers.app, example.com')
        monkeypatch.setenv('CURATION_MAX_TAGS', '2')
        config = load_config()
        assert config['moderation']['allowed_domains'] == ['housers.app', 'example.com']
        assert config['tags']['max_tags'] == 2


class TestModerateCommand:
    """Test the moderate command."""

    def test_blocked(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['moderate', 'f u c k this'])
        assert result.exit_code == 0
        assert "Verdict: blocked" in result.output
        assert "Reason: Title: Content contains prohibited language" in result.output

    def test_flagged(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['moderate', 'Charming home', '-d', 'DM me on telegram for details'])
        assert "Verdict: flagged" in result.output
        assert "Queued for manual review" in result.output

    def test_approved(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['moderate', 'Charming home'])
        assert "Verdict: approved" in result.output
        assert "Reason" not in result.output


class TestTagCommands:
    """Test tags, search and keywords commands."""

    def test_tags(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, [
                'tags', 'Cozy updated starter home',
                '--city', 'Orlando', '--price', '250000', '--bedrooms', '3',
            ])
        assert result.exit_code == 0
        assert result.output.strip() == '#Orlando #Under300K #StarterHome #Renovation'

    def test_tags_env_limit(self, runner, monkeypatch):
        monkeypatch.setenv('CURATION_MAX_TAGS', '2')
        with runner.isolated_filesystem():
            result = runner.invoke(cli, [
                'tags', 'Cozy updated starter home', '--city', 'Orlando', '--price', '250000',
            ])
        assert result.output.strip() == '#Orlando #Under300K'

    def test_tags_none(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['tags', 'House'])
        assert "(no tags)" in result.output

    def test_search(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['search', 'fixer'])
        assert result.output.strip() == '#FixerUpper'

    def test_search_no_match(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['search', 'zzzz'])
        assert "No matching tags" in result.output

    def test_keywords(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['keywords'])
        assert 'fixer' in result.output.splitlines()

    def test_missing_config_errors(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['--config', 'missing.yml', 'search', 'pool'])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_non_mapping_config_errors(self, runner):
        with runner.isolated_filesystem():
            with open('config.yml', 'w') as f:
                f.write("- not\n- a mapping\n")
            result = runner.invoke(cli, ['search', 'pool'])
        assert result.exit_code == 1
        assert "Config file must be a mapping" in result.output


class TestCheckImageCommand:
    """Test the check-image command."""

    def test_valid(self, runner, image_bytes):
        with runner.isolated_filesystem():
            with open('front.jpg', 'wb') as f:
                f.write(image_bytes(800, 600, 'JPEG', size=2048))
            result = runner.invoke(cli, ['check-image', 'front.jpg'])
        assert result.exit_code == 0
        assert "OK: front.jpg" in result.output

    def test_invalid(self, runner):
        with runner.isolated_filesystem():
            with open('pixel.png', 'wb') as f:
                f.write(b'\x00' * 10)
            result = runner.invoke(cli, ['check-image', 'pixel.png'])
        assert result.exit_code == 1
        assert "Image file is too small" in result.output


class TestStoreCommands:
    """Test import, migrations and status against a temp database."""

    def _import(self, runner, listings):
        with open('listings.json', 'w') as f:
            json.dump(listings, f)
        return runner.invoke(cli, ['--db', 'data/test.db', 'import-listings', 'listings.json'])

    def test_init_db(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['--db', 'data/test.db', 'init-db'])
        assert result.exit_code == 0
        assert 'listings' in result.output
        assert 'run_log' in result.output

    def test_import_skips_blocked(self, runner, sample_listings):
        blocked = {'id': 'bad-1', 'title': 'f u c k this', 'city': 'Tampa'}
        with runner.isolated_filesystem():
            result = self._import(runner, sample_listings + [blocked])
            status = runner.invoke(cli, ['--db', 'data/test.db', 'status'])
        assert result.exit_code == 0
        assert "Imported 3 listings (1 blocked)" in result.output
        assert "Listings: 3" in status.output
        assert "No successful runs yet" in status.output

    def test_import_keeps_flagged(self, runner):
        """Only blocked listings are skipped; flagged ones are stored for review."""
        flagged = {'id': 'flag-1', 'title': 'Charming home', 'description': 'Quiet unit, adults only'}
        with runner.isolated_filesystem():
            result = self._import(runner, [flagged])
        assert "Imported 1 listings (0 blocked)" in result.output

    def test_import_yaml(self, runner):
        with runner.isolated_filesystem():
            with open('listings.yml', 'w') as f:
                f.write("listings:\n  - id: y-1\n    title: Home with pool\n")
            result = runner.invoke(cli, ['--db', 'data/test.db', 'import-listings', 'listings.yml'])
        assert "Imported 1 listings (0 blocked)" in result.output

    def test_retag(self, runner, sample_listings):
        with runner.isolated_filesystem():
            self._import(runner, sample_listings)
            result = runner.invoke(cli, ['--db', 'data/test.db', 'retag', '--page-size', '2'])
            status = runner.invoke(cli, ['--db', 'data/test.db', 'status'])
        assert result.exit_code == 0
        assert "Updated: 3" in result.output
        assert "Failed: 0" in result.output
        assert "Type: retag" in status.output

    def test_patch_tag(self, runner, sample_listings):
        with runner.isolated_filesystem():
            self._import(runner, sample_listings)
            result = runner.invoke(cli, ['--db', 'data/test.db', 'patch-tag'])
            rerun = runner.invoke(cli, ['--db', 'data/test.db', 'patch-tag'])
        assert result.exit_code == 0
        assert "Updated: 1" in result.output
        assert "Skipped: 1" in result.output
        assert "Updated: 0" in rerun.output
        assert "Skipped: 2" in rerun.output

    @patch('curation.cli.regenerate_all_tags')
    def test_failed_run_logged(self, mock_regenerate, runner):
        """A job that raises is recorded as a failed run."""
        mock_regenerate.side_effect = RuntimeError("store offline")
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ['--db', 'data/test.db', 'retag'])
            with Database('data/test.db') as db:
                runs = db.query("SELECT status, error_message FROM run_log")

        assert result.exit_code == 1
        assert "retag failed: store offline" in result.output
        assert runs == [{'status': 'failed', 'error_message': 'store offline'}]
