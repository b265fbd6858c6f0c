from __future__ import annotations

from pathlib import Path

import pytest

from services.overrides import ConfigOverrideStore

SENSORS_CONF = """\
# lm-sensors configuration
label in9 "Outside any block"

chip "lm78-*" "lm79-*"
    label in0 "LM78 core"

chip "driverX-*" "w83627hf-*"
    label in0 "Core 0"
    label in1 VCore  Main   # unquoted, spaced
    label in4 "Fan A" "trailing"
    label temp1 "First"
    label temp1 "Second"
    ignore temp2
    ignore
    compute in1 @*2 , @/2
    compute in2 @*(1+120/56)-4.096*120/56, (@+4.096*120/56)/(1+120/56)
    compute in3 @*bogus , @/2
    label in5

chip "driverX-*"
    label in6 "Never read"
"""


@pytest.fixture()
def conf_path(tmp_path: Path) -> Path:
    path = tmp_path / "sensors3.conf"
    path.write_text(SENSORS_CONF)
    return path


@pytest.fixture()
def store(conf_path: Path) -> ConfigOverrideStore:
    store = ConfigOverrideStore([str(conf_path)])
    store.load("driverX")
    return store


def test_label_inside_active_block(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in0") == "Core 0"


def test_unquoted_label_tokens_are_joined(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in1") == "VCore Main"


def test_label_stops_at_closing_quote(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in4") == "Fan A"


def test_last_label_definition_wins(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "temp1") == "Second"


def test_lines_outside_matching_block_are_ignored(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in9") is None
    assert store.label_for("lm78", "in0") is None


def test_parsing_stops_at_next_chip_line(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in6") is None


def test_label_without_value_is_skipped(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in5") is None


def test_ignore_is_distinct_from_label(store: ConfigOverrideStore) -> None:
    assert store.is_ignored("driverX", "temp2") is True
    assert store.label_for("driverX", "temp2") is None
    assert store.is_ignored("driverX", "temp1") is False


def test_compute_keeps_forward_formula_only(store: ConfigOverrideStore) -> None:
    formula = store.formula_for("driverX", "in1")

    assert formula is not None
    assert formula.evaluate(1.5) == 3.0


def test_compute_with_comma_attached_to_token(store: ConfigOverrideStore) -> None:
    formula = store.formula_for("driverX", "in2")

    assert formula is not None
    assert formula.evaluate(2.0) == pytest.approx(2.0 * (1 + 120 / 56) - 4.096 * 120 / 56)


def test_invalid_compute_formula_is_skipped(store: ConfigOverrideStore) -> None:
    assert store.formula_for("driverX", "in3") is None


def test_label_and_compute_can_share_a_channel(store: ConfigOverrideStore) -> None:
    assert store.label_for("driverX", "in1") is not None
    assert store.formula_for("driverX", "in1") is not None


def test_other_driver_keys_are_not_visible(store: ConfigOverrideStore) -> None:
    assert store.label_for("w83627hf", "in0") is None
    assert store.formula_for("w83627hf", "in1") is None


def test_second_driver_in_same_chip_line(conf_path: Path) -> None:
    store = ConfigOverrideStore([str(conf_path)])
    store.load("w83627hf")

    assert store.label_for("w83627hf", "in0") == "Core 0"
    assert store.label_for("driverX", "in0") is None


def test_unquoted_chip_name_matches(tmp_path: Path) -> None:
    path = tmp_path / "sensors.conf"
    path.write_text("chip driverX\n    label in0 \"Core 0\"\n")
    store = ConfigOverrideStore([str(path)])

    store.load("driverX")

    assert store.label_for("driverX", "in0") == "Core 0"


def test_missing_config_files_mean_no_overrides(tmp_path: Path) -> None:
    store = ConfigOverrideStore([str(tmp_path / "sensors3.conf"), str(tmp_path / "sensors.conf")])

    store.load("driverX")

    assert store.label_for("driverX", "in0") is None
    assert store.formula_for("driverX", "in0") is None
    assert store.is_ignored("driverX", "in0") is False
    assert store.loaded_drivers == frozenset({"driverX"})


def test_falls_back_to_secondary_path(tmp_path: Path) -> None:
    secondary = tmp_path / "sensors.conf"
    secondary.write_text("chip \"acme-*\"\n  label temp1 \"Board\"\n")
    store = ConfigOverrideStore([str(tmp_path / "sensors3.conf"), str(secondary)])

    store.load("acme")

    assert store.label_for("acme", "temp1") == "Board"


def test_load_is_idempotent_per_driver(conf_path: Path) -> None:
    store = ConfigOverrideStore([str(conf_path)])
    store.load("driverX")
    conf_path.write_text("chip \"driverX-*\"\n  label in0 \"Changed\"\n")

    store.load("driverX")

    assert store.label_for("driverX", "in0") == "Core 0"
