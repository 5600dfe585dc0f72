"""Tests for the config module."""

from pathlib import Path

from ratesmith.config import Settings, settings


class TestSettings:
    """Test Settings configuration."""

    def test_module_settings_instance(self):
        """Test the shared settings object is a Settings."""
        assert isinstance(settings, Settings)

    def test_settings_types(self):
        """Test default values have the expected types."""
        current = Settings()

        assert isinstance(current.template_db_path, Path)
        assert isinstance(current.template_json_path, Path)
        assert isinstance(current.blank_run_terminator, int)
        assert isinstance(current.low_confidence_threshold, float)
        assert isinstance(current.default_currency, str)

    def test_settings_explicit_values(self, tmp_path):
        """Test Settings accepts explicit overrides."""
        db_path = tmp_path / "templates.db"
        current = Settings(
            template_db_path=db_path,
            default_currency="GBP",
            blank_run_terminator=5,
            price_rounding_precision=0,
            log_level="DEBUG",
        )

        assert current.template_db_path == db_path
        assert current.default_currency == "GBP"
        assert current.blank_run_terminator == 5
        assert current.price_rounding_precision == 0
        assert current.log_level == "DEBUG"

    def test_settings_path_handling(self, tmp_path):
        """Test that string paths are converted to Path objects."""
        current = Settings(template_json_path=str(tmp_path / "templates.json"))

        assert isinstance(current.template_json_path, Path)
        assert current.template_json_path.name == "templates.json"
