"""
Unit tests for scheduler settings.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from podplay.config import get_default_settings, load_settings, merge_settings


class TestSettings:
    """Tests for defaults, merging and YAML loading."""

    def test_defaults(self):
        settings = get_default_settings()
        assert settings['strict_beam_width'] == 3
        assert settings['strict_max_depth'] == 200
        assert settings['relaxed_beam_width'] == 5
        assert settings['relaxed_max_depth'] == 1000
        assert settings['relaxed_order3_penalty'] == 25000
        assert settings['relaxed_order4_penalty'] == 10000
        assert settings['random_retries'] == 5

    def test_merge_overrides(self):
        settings = merge_settings({'random_retries': 0, 'beam_width': 4})
        assert settings['random_retries'] == 0
        assert settings['beam_width'] == 4
        assert settings['max_enumeration'] == 20000

    def test_unknown_keys_dropped(self, caplog):
        settings = merge_settings({'colour': 'blue'})
        assert 'colour' not in settings
        assert "Ignoring unknown setting 'colour'" in caplog.text

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            merge_settings({'strict_beam_width': 0})
        with pytest.raises(ValueError):
            merge_settings({'random_seed': "abc"})
        with pytest.raises(ValueError):
            merge_settings({'greedy_enabled': "yes"})

    def test_load_from_yaml(self, settings_file):
        settings = load_settings(settings_file)
        assert settings['random_retries'] == 2
        assert settings['strict_beam_width'] == 4

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(str(tmp_path / "nope.yaml")) == get_default_settings()
        assert load_settings(None) == get_default_settings()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(str(path)) == get_default_settings()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_settings(str(path))
