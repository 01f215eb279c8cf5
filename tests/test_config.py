"""Test configuration loading."""

import pytest

from atmosync.config import AtmoConfig, load_config, parse_slot_rules
from atmosync.exceptions import AtmoConfigError
from atmosync.models import SlotRule


def test_defaults() -> None:
    """Test the default rule table and intervals."""
    config = AtmoConfig()

    assert config.poll_interval == 60
    assert config.refresh_interval == 6 * 60 * 60
    assert [rule.slot for rule in config.slot_rules] == [
        "main_station",
        "thermostat",
        "rain",
        "outdoor",
        "pool_house",
        "home_office",
        "bedroom",
    ]
    assert config.slot_rules[0] == SlotRule(
        slot="main_station",
        metrics=("temperature", "humidity", "co2", "noise"),
        module_type="NAMain",
    )
    assert config.slot_rules[3].module_id == "02:00:00:a9:a2:14"


def test_missing_file_uses_defaults(tmp_path) -> None:
    """Test an absent file is not an error."""
    assert load_config(tmp_path / "absent.yaml") == AtmoConfig()
    assert load_config(None) == AtmoConfig()


def test_load_yaml(tmp_path) -> None:
    """Test values and the slot table are read from YAML."""
    path = tmp_path / "atmosync.yaml"
    path.write_text(
        "base_url: http://backend:9000\n"
        "identity_db: null\n"
        "poll_interval: 15\n"
        "unknown_key: 1\n"
        "slots:\n"
        "  - slot: garden\n"
        "    id: '02:00:00:00:00:99'\n"
        "    metrics: [temperature]\n"
        "  - slot: station\n"
        "    type: NAMain\n"
        "    metrics: [co2, noise]\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.base_url == "http://backend:9000"
    assert config.identity_db is None
    assert config.poll_interval == 15
    assert config.slot_rules == [
        SlotRule(slot="garden", metrics=("temperature",), module_id="02:00:00:00:00:99"),
        SlotRule(slot="station", metrics=("co2", "noise"), module_type="NAMain"),
    ]


def test_empty_yaml(tmp_path) -> None:
    """Test an empty file yields defaults."""
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == AtmoConfig()


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "slots: {}\n",
        "slots: [{slot: x, metrics: [temperature]}]\n",
        "slots: [{slot: x, type: NAMain}]\n",
        "slots: [{type: NAMain, metrics: [co2]}]\n",
        "slots: [[1, 2]]\n",
        "key: [unclosed\n",
    ],
)
def test_invalid_config(tmp_path, content) -> None:
    """Test invalid files raise AtmoConfigError."""
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(AtmoConfigError):
        load_config(path)


def test_parse_slot_rules_requires_list() -> None:
    """Test a non-list table is rejected."""
    with pytest.raises(AtmoConfigError):
        parse_slot_rules(None)


def test_unquoted_mac_rejected(tmp_path) -> None:
    """Test an all-digit MAC read by YAML as a number is an error, not a dead rule."""
    path = tmp_path / "atmosync.yaml"
    path.write_text(
        "slots:\n"
        "  - slot: garden\n"
        "    id: 12:34:56:10:20:30\n"
        "    metrics: [temperature]\n",
        encoding="utf-8",
    )

    with pytest.raises(AtmoConfigError, match=r"slots\[0\]\.id must be a string"):
        load_config(path)


@pytest.mark.parametrize("key", ["slot", "type", "id"])
def test_rule_fields_must_be_strings(key) -> None:
    """Test non-string rule fields are rejected."""
    raw = {"slot": "garden", "type": "NAModule1", "metrics": ["temperature"]}
    raw[key] = 42

    with pytest.raises(AtmoConfigError, match=rf"slots\[0\]\.{key}"):
        parse_slot_rules([raw])
