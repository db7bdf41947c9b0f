"""Tests for configuration."""

from pathlib import Path

import pytest

from kimbila.config import AppSettings, GeminiSettings, StorageSettings, validate_all_settings


class TestSettings:
    """Tests for settings defaults and validation."""

    def test_app_defaults(self):
        """Test the defaults the ledger relies on."""
        settings = AppSettings()
        assert settings.default_category == "General"
        assert settings.debt_sale_description.format(quantity=2, product_name="Soap") == "Sale of 2x Soap"

    def test_bad_description_template(self):
        """Test that an unknown placeholder fails at startup."""
        with pytest.raises(ValueError):
            AppSettings(debt_sale_description="Sale to {customer}")

    def test_storage_keys(self):
        """Test the default keys and the key alphabet."""
        settings = StorageSettings()
        assert (settings.products_key, settings.sales_key, settings.debts_key) == (
            "k_products", "k_sales", "k_debts",
        )
        with pytest.raises(ValueError):
            StorageSettings(products_key="../products")

    def test_data_dir_expands_home(self):
        """Test that ~ in the data directory is expanded."""
        settings = StorageSettings(data_dir="~/shop-data")
        assert settings.data_dir == Path.home() / "shop-data"

    def test_blank_api_key_rejected(self):
        """Test that an empty Gemini key counts as not configured."""
        with pytest.raises(ValueError):
            GeminiSettings(api_key="  ")

    def test_validate_all_settings_without_gemini(self, monkeypatch):
        """Test that a missing Gemini key is reported but storage still works."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.chdir(Path(__file__).parent)
        status = validate_all_settings()
        assert status["gemini"] is False
        assert "gemini_error" in status
        assert status["storage"] is True
        assert status["app"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
