import logging

import pytest

import masterpack_core.settings as settings
from masterpack_core.errors import InvalidConfiguration, InvalidGeometry
from masterpack_core.geometry import CompressionAllowance, Dimensions3D


def test_load_weights_defaults_when_file_missing(tmp_path):
    settings.load_weights.cache_clear()
    weights = settings.load_weights(str(tmp_path / "missing.yaml"))

    assert weights == settings.DEFAULT_WEIGHTS
    settings.load_weights.cache_clear()


def test_load_weights_from_env(tmp_path, monkeypatch, caplog):
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text(
        "arrangement:\n  utilization: 250\n"
        "candidate:\n  volume: '0,5'\n  mystery: 3\n",
        encoding="utf-8",
    )
    settings.load_weights.cache_clear()
    monkeypatch.setenv(settings.SETTINGS_ENV_VAR, str(settings_path))

    with caplog.at_level(logging.WARNING, logger="masterpack_core.settings"):
        weights = settings.load_weights()

    assert weights.arrangement.utilization == pytest.approx(250)
    assert weights.arrangement.multiple_bonus == pytest.approx(
        settings.DEFAULT_WEIGHTS.arrangement.multiple_bonus
    )
    assert weights.candidate.volume == pytest.approx(0.5)
    assert "candidate.mystery" in caplog.text

    settings.load_weights.cache_clear()


def test_malformed_weight_raises(tmp_path):
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text("candidate:\n  volume: lots\n", encoding="utf-8")
    settings.load_weights.cache_clear()

    with pytest.raises(InvalidConfiguration):
        settings.load_weights(str(settings_path))

    settings.load_weights.cache_clear()


CONFIG_YAML = """
pallet:
  length: 48
  width: 40
  height: 6
  target_height: 60
masterpack:
  wall_thickness: 0.25
  tare_weight: 1.5
solver:
  max_overhang: 1
  preferred_multiples: [24, 12]
  patterns: [column, brick]
  compression:
    height: 0.05
"""


def test_load_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    config = settings.load_config(str(path))

    assert config.pallet.footprint.length == 48
    assert config.pallet.available_height == pytest.approx(54)
    assert config.pallet.patterns == ("column", "brick")
    assert config.preferred_multiples == (24, 12)
    assert config.compression == CompressionAllowance(height=0.05)
    assert config.container(Dimensions3D(20, 15, 14)).internal.as_tuple() == (
        19.5,
        14.5,
        13.5,
    )


def test_unknown_pattern_is_a_configuration_error():
    data = {
        "pallet": {"length": 48, "width": 40, "target_height": 60},
        "solver": {"patterns": ["zigzag"]},
    }
    with pytest.raises(InvalidConfiguration):
        settings.config_from_mapping(data)


def test_missing_pallet_key_is_a_configuration_error():
    with pytest.raises(InvalidConfiguration):
        settings.config_from_mapping({"pallet": {"length": 48, "width": 40}})


def test_load_catalog(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "products:\n"
        "  - id: SKU-1\n"
        "    dimensions: [6, 4, 3]\n"
        "    unit_weight: 0.5\n"
        "    baseline_quantity: 48\n"
        "    observed_box: {length: 25, width: 17, height: 13}\n"
        "  - id: SKU-2\n"
        "    dimensions: {length: 5, width: 5, height: '2,5'}\n"
        "    notes: crushable\n",
        encoding="utf-8",
    )

    catalog = settings.load_catalog(str(path))

    assert [product.product_id for product in catalog] == ["SKU-1", "SKU-2"]
    assert catalog[0].baseline_quantity == 48
    assert catalog[0].observed_box == Dimensions3D(25, 17, 13)
    assert catalog[1].dimensions.height == pytest.approx(2.5)
    assert catalog[1].baseline_quantity is None
    assert catalog[1].notes == "crushable"


def test_catalog_with_zero_dimension_is_invalid_geometry():
    with pytest.raises(InvalidGeometry):
        settings.product_from_mapping({"id": "bad", "dimensions": [6, 0, 3]})


PALLET = {"length": 48, "width": 40, "target_height": 60}


@pytest.mark.parametrize(
    "data",
    [
        {"pallet": PALLET, "solver": {"patterns": None}},
        {"pallet": PALLET, "solver": {"preferred_multiples": None}},
        {"pallet": PALLET, "solver": {"preferred_multiples": {"a": 1}}},
        {"pallet": PALLET, "solver": ["column"]},
        {"pallet": PALLET, "masterpack": [0.25, 1.5]},
    ],
)
def test_malformed_config_sections_are_configuration_errors(data):
    with pytest.raises(InvalidConfiguration):
        settings.config_from_mapping(data)


def test_single_values_are_accepted_for_lists():
    config = settings.config_from_mapping(
        {"pallet": PALLET, "solver": {"patterns": "alternating", "preferred_multiples": 24}}
    )

    assert config.pallet.patterns == ("alternating",)
    assert config.preferred_multiples == (24,)


def test_swap_pattern_name_means_alternating():
    config = settings.config_from_mapping(
        {"pallet": PALLET, "solver": {"patterns": ["column", "swap-40-48"]}}
    )

    assert config.pallet.patterns == ("column", "alternating")


@pytest.mark.parametrize(
    "record",
    ["SKU-1", ["SKU-1", [6, 4, 3]], {"id": "SKU-1", "dimensions": 6}, {"id": "SKU-1"}],
)
def test_malformed_product_records_are_configuration_errors(record):
    with pytest.raises(InvalidConfiguration):
        settings.product_from_mapping(record)


def test_catalog_entry_that_is_not_a_mapping(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("- SKU-1\n- SKU-2\n", encoding="utf-8")

    with pytest.raises(InvalidConfiguration):
        settings.load_catalog(str(path))


def test_dimensions_may_be_written_as_text():
    product = settings.product_from_mapping(
        {"id": "SKU-3", "dimensions": '6" x 4" x 3"', "observed_box": "24x16x12"}
    )

    assert product.dimensions == Dimensions3D(6, 4, 3)
    assert product.observed_box == Dimensions3D(24, 16, 12)
