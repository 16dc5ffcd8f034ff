"""Tests for application settings."""

import pytest

from beamauth_api.settings import Settings, split_csv


def test_split_csv():
    assert split_csv(" a@x.org, ,b@x.org ") == ["a@x.org", "b@x.org"]
    assert split_csv(None) == []


def test_database_url_computed():
    settings = Settings(database_url=None, postgres_user="u", postgres_password="p", postgres_db="beam")
    assert settings.database_url_computed == "postgresql://u:p@localhost:5432/beam"


def test_logbooks_default_to_tlog():
    assert Settings(logbooks_csv="").logbooks == ["TLOG"]
    assert Settings(logbooks_csv="ELOG, TLOG").logbooks == ["ELOG", "TLOG"]


def test_production_requires_smtp_and_ops_recipients():
    with pytest.raises(ValueError, match="SMTP_SERVER"):
        Settings(environment="production", smtp_server=None).validate_production_settings()

    with pytest.raises(ValueError, match="OPS_EMAIL_CSV"):
        Settings(environment="production", smtp_server="smtp.example.org", ops_email_csv="").validate_production_settings()

    Settings(environment="development").validate_production_settings()
