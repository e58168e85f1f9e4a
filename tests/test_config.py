"""Tests for TCF2 enforcement and host GDPR configuration."""

import pytest

from src.gdpr.config.enforcement import (
    PURPOSE_IDS,
    PurposeConfig,
    PurposeOneTreatmentConfig,
    SpecialFeatureConfig,
    TCF2Config,
    load_tcf2_config,
)
from src.gdpr.config.host_config import GDPRHostConfig, load_host_config


TCF2_YAML = """
tcf2:
  enabled: true
  purpose1:
    enforce_purpose: true
    enforce_vendors: false
    vendor_exceptions: [appnexus]
  purpose2:
    enforce_purpose: false
  special_feature1:
    enforce: false
    vendor_exceptions: [rubicon]
  purpose_one_treatment:
    enabled: true
    access_allowed: false
  basic_enforcement_vendors: [newbidder]
"""


class TestTCF2ConfigDefaults:
    """Test the default enforcement configuration."""

    def test_everything_enforced(self):
        config = TCF2Config()
        assert config.is_enabled() is True
        for purpose in PURPOSE_IDS:
            assert config.purpose_enforced(purpose) is True
            assert config.purpose_enforcing_vendors(purpose) is True
            assert config.purpose_vendor_exception(purpose, "appnexus") is False
        assert config.feature_one_enforced() is True
        assert config.feature_one_vendor_exception("appnexus") is False

    def test_purpose_one_treatment_disabled(self):
        config = TCF2Config()
        assert config.purpose_one_treatment_enabled() is False
        assert config.purpose_one_treatment_access_allowed() is True

    def test_no_basic_enforcement_vendors(self):
        assert TCF2Config().basic_enforcement_vendor("appnexus") is False

    def test_unknown_purpose_enforced(self):
        config = TCF2Config(purposes={})
        assert config.purpose_enforced(11) is True
        assert config.purpose_enforcing_vendors(11) is True


class TestTCF2ConfigFromDict:
    """Test building the enforcement config from dictionaries."""

    def test_from_dict(self):
        config = TCF2Config.from_dict({
            "enabled": True,
            "purpose2": {
                "enforce_purpose": False,
                "vendor_exceptions": ["appnexus"],
            },
            "special_feature1": {"enforce": False},
            "basic_enforcement_vendors": ["newbidder"],
        })

        assert config.purpose_enforced(2) is False
        assert config.purpose_enforcing_vendors(2) is True
        assert config.purpose_vendor_exception(2, "appnexus") is True
        assert config.purpose_vendor_exception(3, "appnexus") is False
        assert config.feature_one_enforced() is False
        assert config.basic_enforcement_vendor("newbidder") is True

    def test_to_dict_round_trip(self):
        config = TCF2Config(
            enabled=False,
            purposes={p: PurposeConfig(enforce_vendors=p != 4) for p in PURPOSE_IDS},
            special_feature_one=SpecialFeatureConfig(vendor_exceptions=frozenset({"ix"})),
            purpose_one_treatment=PurposeOneTreatmentConfig(enabled=True),
            basic_enforcement_vendors=frozenset({"newbidder"}),
        )
        assert TCF2Config.from_dict(config.to_dict()) == config

    def test_account_overrides_inherit(self):
        host = TCF2Config.from_dict({
            "purpose1": {"vendor_exceptions": ["appnexus"]},
            "basic_enforcement_vendors": ["newbidder"],
        })
        account = host.with_account_overrides({
            "purpose1": {"enforce_vendors": False},
            "purpose_one_treatment": {"enabled": True, "access_allowed": None},
        })

        assert account.purpose_enforcing_vendors(1) is False
        # Unset fields inherit from the host
        assert account.purpose_vendor_exception(1, "appnexus") is True
        assert account.basic_enforcement_vendor("newbidder") is True
        assert account.purpose_one_treatment_enabled() is True
        assert account.purpose_one_treatment_access_allowed() is True

    def test_account_overrides_empty(self):
        host = TCF2Config()
        assert host.with_account_overrides(None) is host
        assert host.with_account_overrides({}) is host

    def test_config_is_immutable(self):
        config = TCF2Config()
        with pytest.raises(TypeError):
            config.purposes[1] = PurposeConfig(enforce_purpose=False)


class TestLoadTCF2Config:
    """Test loading the enforcement config from YAML."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "tcf2.yaml"
        path.write_text(TCF2_YAML)

        config = load_tcf2_config(path)

        assert config.purpose_enforcing_vendors(1) is False
        assert config.purpose_vendor_exception(1, "appnexus") is True
        assert config.purpose_enforced(2) is False
        assert config.purpose_enforced(3) is True
        assert config.feature_one_enforced() is False
        assert config.feature_one_vendor_exception("rubicon") is True
        assert config.purpose_one_treatment_enabled() is True
        assert config.purpose_one_treatment_access_allowed() is False
        assert config.basic_enforcement_vendor("newbidder") is True

    def test_load_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "tcf2.yaml"
        path.write_text("enabled: false\n")
        monkeypatch.setenv("GDPR_TCF2_CONFIG", str(path))

        assert load_tcf2_config().is_enabled() is False

    def test_defaults_without_path(self, monkeypatch):
        monkeypatch.delenv("GDPR_TCF2_CONFIG", raising=False)
        assert load_tcf2_config() == TCF2Config()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tcf2.yaml"
        path.write_text("")
        assert load_tcf2_config(path) == TCF2Config()


class TestGDPRHostConfig:
    """Test host-level GDPR settings."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("GDPR_ENABLED", "GDPR_HOST_VENDOR_ID", "GDPR_DEFAULT_VALUE"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        config = GDPRHostConfig()
        assert config.enabled is True
        assert config.host_vendor_id == 0
        assert config.default_value == "1"
        assert config.vendor_list_timeout == 2.0

    def test_invalid_default_value(self):
        with pytest.raises(ValueError):
            GDPRHostConfig(default_value="yes")

    def test_invalid_host_vendor_id(self):
        with pytest.raises(ValueError):
            GDPRHostConfig(host_vendor_id=70000)

    def test_from_dict(self):
        config = GDPRHostConfig.from_dict({
            "host_vendor_id": 15,
            "default_value": 0,
            "non_standard_publishers": ["pub-1", 42],
            "vendor_list_timeout_ms": 500,
            "vendor_list_preload": [150, "151"],
        })
        assert config.host_vendor_id == 15
        assert config.default_value == "0"
        assert config.non_standard_publishers == frozenset({"pub-1", "42"})
        assert config.vendor_list_timeout == 0.5
        assert config.vendor_list_preload == (150, 151)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GDPR_ENABLED", "false")
        monkeypatch.setenv("GDPR_HOST_VENDOR_ID", "99")
        monkeypatch.setenv("GDPR_DEFAULT_VALUE", "0")

        config = GDPRHostConfig.from_dict({"enabled": True, "host_vendor_id": 15})

        assert config.enabled is False
        assert config.host_vendor_id == 99
        assert config.default_value == "0"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "host.yaml"
        path.write_text("gdpr:\n  host_vendor_id: 12\n  non_standard_publishers: [abc]\n")

        config = load_host_config(path)

        assert config.host_vendor_id == 12
        assert "abc" in config.non_standard_publishers
