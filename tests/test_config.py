"""Tests for TOML settings loading."""

import pytest

from rcmentions.config import CONFIG_ENV_VAR, DetectionSettings, load_settings


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)

        settings = load_settings()

        assert settings == DetectionSettings()
        assert settings.matcher.fuzzy_threshold == 0.8
        assert settings.batch.video_description_limit == 500
        assert settings.queue.max_attempts == 3

    def test_reads_file_in_cwd(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "rcmentions.toml").write_text("[matcher]\nfuzzy_enabled = false\n\n[batch]\nmax_age_hours = 48\n")

        settings = load_settings()

        assert settings.matcher.fuzzy_enabled is False
        assert settings.batch.max_age_hours == 48
        assert settings.batch.limit == 10

    def test_env_var_takes_precedence(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "rcmentions.toml").write_text("[queue]\nconcurrency = 2\n")
        other = tmp_path / "other.toml"
        other.write_text("[queue]\nconcurrency = 7\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(other))

        assert load_settings().queue.concurrency == 7

    def test_unknown_sections_ignored(self, tmp_path) -> None:
        path = tmp_path / "settings.toml"
        path.write_text('[tool.other]\nname = "x"\n\n[index]\nttl_seconds = 30\n')

        assert load_settings(path).index.ttl_seconds == 30

    def test_invalid_value_raises(self, tmp_path) -> None:
        path = tmp_path / "settings.toml"
        path.write_text("[matcher]\nfuzzy_threshold = 1.5\n")

        with pytest.raises(ValueError, match="Invalid settings"):
            load_settings(path)
