"""Tests for pipeline configuration objects and file loading."""

import json

import pytest
import yaml
from hypothesis import given, settings, strategies as st

from forecastxgb.models.config import CVConfig, XGBARConfig
from forecastxgb.utils.config_manager import ConfigManager, load_xgbar_config
from forecastxgb.utils.error_handling import InvalidConfigurationError

json_values = st.recursive(
    st.text(min_size=1) | st.integers() | st.floats(allow_nan=False) | st.booleans(),
    lambda children: st.lists(children) | st.dictionaries(st.text(min_size=1), children),
    max_leaves=10,
)
keys = st.text(alphabet="abcdefgh_", min_size=1, max_size=6)


class TestXGBARConfig:

    def test_defaults_validate(self):
        config = XGBARConfig().validate()
        assert config.seas_method == "dummies"
        assert config.cv.nrounds_method == "cv"

    @pytest.mark.parametrize("kwargs", [
        {"maxlag": 0},
        {"seas_method": "stl"},
        {"trend_method": "linear"},
        {"lam": "boxcox"},
        {"K": 0},
        {"frequency": 0},
        {"diffs": 3},
        {"min_train_rows": 0},
        {"cv": CVConfig(nrounds_method="grid")},
        {"cv": CVConfig(nrounds=0)},
        {"cv": CVConfig(nfold=1)},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidConfigurationError):
            XGBARConfig(**kwargs).validate()

    def test_from_dict_lambda_alias_and_cv(self):
        config = XGBARConfig.from_dict(
            {"lambda": "auto", "maxlag": 4, "cv": {"nrounds": 30, "nrounds_method": "v"}}
        )
        assert config.lam == "auto"
        assert config.maxlag == 4
        assert config.cv == CVConfig(nrounds=30, nrounds_method="v")

    def test_from_dict_unknown_keys(self):
        with pytest.raises(InvalidConfigurationError, match="Unknown"):
            XGBARConfig.from_dict({"max_lag": 3})

    def test_from_dict_bad_cv_key(self):
        with pytest.raises(InvalidConfigurationError):
            XGBARConfig.from_dict({"cv": {"folds": 3}})

    def test_to_dict_round_trip(self):
        config = XGBARConfig(maxlag=6, hyperparameters={"max_depth": 3})
        assert XGBARConfig.from_dict(config.to_dict()) == config

    def test_resolve_nfold(self):
        assert CVConfig().resolve_nfold(100) == 10
        assert CVConfig().resolve_nfold(30) == 5
        assert CVConfig().resolve_nfold(3) == 3
        assert CVConfig(nfold=4).resolve_nfold(100) == 4


class TestConfigManager:

    @pytest.fixture
    def manager(self, tmp_path):
        return ConfigManager(config_dir=str(tmp_path))

    @given(st.dictionaries(keys, json_values), st.dictionaries(keys, json_values))
    @settings(max_examples=50)
    def test_merge_override_wins(self, base, override):
        merged = ConfigManager().merge_configs(base, override)
        for k in base:
            assert k in merged
        for k in override:
            if not (isinstance(base.get(k), dict) and isinstance(override[k], dict)):
                assert merged[k] == override[k]

    @given(st.lists(keys, min_size=1, max_size=4), json_values)
    @settings(max_examples=50)
    def test_set_then_get(self, parts, value):
        config = {}
        path = ".".join(parts)
        manager = ConfigManager()
        manager.set_value(config, path, value)
        assert json.dumps(manager.get_value(config, path), sort_keys=True) == json.dumps(
            value, sort_keys=True
        )

    def test_get_value_default(self, manager):
        assert manager.get_value({"cv": {"nrounds": 5}}, "cv.nrounds") == 5
        assert manager.get_value({"cv": {}}, "cv.nfold", default=7) == 7

    def test_load_yaml_and_json(self, manager, tmp_path):
        (tmp_path / "a.yaml").write_text(yaml.safe_dump({"maxlag": 3}))
        (tmp_path / "b.json").write_text(json.dumps({"maxlag": 4}))
        assert manager.load_config("a.yaml") == {"maxlag": 3}
        assert manager.load_config("b.json") == {"maxlag": 4}

    def test_unsupported_format(self, manager, tmp_path):
        (tmp_path / "a.toml").write_text("maxlag = 3")
        with pytest.raises(InvalidConfigurationError):
            manager.load_config("a.toml")

    def test_missing_file(self, manager):
        with pytest.raises(FileNotFoundError):
            manager.load_config("absent.yaml")

    def test_schema_error_names_path(self, manager):
        with pytest.raises(InvalidConfigurationError) as excinfo:
            manager.validate_config({"cv": {"nrounds": "many"}}, "xgbar_config.schema.json")
        assert "cv -> nrounds" in str(excinfo.value)


class TestLoadXGBARConfig:

    def test_nested_section_with_overrides(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(yaml.safe_dump({
            "xgbar": {
                "maxlag": 12,
                "seas_method": "fourier",
                "K": 2,
                "cv": {"nrounds": 50, "nrounds_method": "cv"},
            }
        }))
        config = load_xgbar_config(path, overrides={"cv": {"nrounds_method": "manual"}})
        assert config.maxlag == 12
        assert config.seas_method == "fourier"
        assert config.cv.nrounds == 50
        assert config.cv.nrounds_method == "manual"

    def test_schema_rejects_unknown_method(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"seas_method": "stl"}))
        with pytest.raises(InvalidConfigurationError):
            load_xgbar_config(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_xgbar_config(path) == XGBARConfig()
