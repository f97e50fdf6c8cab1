from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from deskpulse.config import Settings
from deskpulse.core import ConfigurationException
from deskpulse.dashboard.domain import DisplayNames
from deskpulse.dashboard.infrastructure import YAMLDisplayNamesProvider


def write_yaml(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "display_names.yaml"
    path.write_text(body)
    return path


# ---------------------------------------------------------------------------
# Display names
# ---------------------------------------------------------------------------


def test_missing_file_uses_default_names(tmp_path: Path):
    names = YAMLDisplayNamesProvider(tmp_path / "absent.yaml").load()

    assert names == DisplayNames()
    assert names.priority_name(1) == "P1"
    assert names.state_name(4) == "Closed"


def test_yaml_overrides_merge_with_defaults(tmp_path: Path):
    path = write_yaml(tmp_path, 'priority_names:\n  1: "1 urgent"\nstate_names:\n  "3": "waiting"\n')

    names = YAMLDisplayNamesProvider(path).load()

    assert names.priority_name(1) == "1 urgent"
    assert names.priority_name(2) == "P2"
    assert names.state_name(3) == "waiting"
    assert names.state_name(2) == "Open"
    assert names.state_name(None) == "Unknown"


def test_get_names_loads_once(tmp_path: Path):
    path = write_yaml(tmp_path, "priority_names:\n  1: Critical\n")
    provider = YAMLDisplayNamesProvider(path)

    first = provider.get_names()
    path.write_text("priority_names:\n  1: Changed\n")

    assert provider.get_names() is first


@pytest.mark.parametrize(
    "body",
    [
        "- just\n- a list\n",
        "priority_names: [P1, P2]\n",
        "state_names:\n  open: Open\n",
    ],
)
def test_invalid_yaml_is_a_configuration_error(tmp_path: Path, body: str):
    path = write_yaml(tmp_path, body)

    with pytest.raises(ConfigurationException):
        YAMLDisplayNamesProvider(path).load()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_settings_build_thresholds():
    settings = Settings(
        sla_warning_threshold_minutes=90,
        on_hold_state_id=3,
        pending_reminder_state_id=6,
        pending_close_state_id=7,
        aged_ticket_hours=24,
    )

    thresholds = settings.to_thresholds()

    assert thresholds.on_hold_state_ids == frozenset({3, 6, 7})
    assert thresholds.warning_window == timedelta(minutes=90)
    assert thresholds.aged_after == timedelta(hours=24)


def test_settings_normalize_zammad_url():
    assert Settings(zammad_url=" https://support.example.com/ ").zammad_url == "https://support.example.com"


def test_settings_reject_unknown_environment():
    with pytest.raises(ValidationError):
        Settings(environment="qa")


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("CACHE_EXPIRATION_SECONDS", "45")
    monkeypatch.setenv("DASHBOARD_TIMEZONE", "America/Chicago")

    settings = Settings()

    assert settings.cache_expiration_seconds == 45
    assert settings.dashboard_timezone == "America/Chicago"
