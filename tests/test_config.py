"""
Configuration Tests
"""

import os

from homeostat.config import DEFAULT_CONFIG, AppConfig, get_config
from homeostat.core.policy import DEFAULT_REGULATOR_POLICY, RegulatorPolicy
from homeostat.engine import HomeostatConfig, RegulatorConfig
from homeostat.observability import ObservabilityConfig


class TestAppConfig:

    def test_prod_defaults(self):
        config = get_config({})

        assert config.env == "prod"
        assert config.state_path == os.path.join("data", "state.json")
        assert config.host == "0.0.0.0"
        assert config.port == 8000
        assert config == DEFAULT_CONFIG

    def test_dev_uses_dev_state_file(self):
        config = get_config({"HOMEOSTAT_ENV": "dev"})
        assert config.state_path == os.path.join("data", "state-dev.json")

    def test_unknown_env_is_prod(self):
        assert get_config({"HOMEOSTAT_ENV": "staging"}).env == "prod"

    def test_state_path_override(self):
        config = get_config({"HOMEOSTAT_ENV": "dev", "HOMEOSTAT_STATE_PATH": "/tmp/s.json"})
        assert config.state_path == "/tmp/s.json"

    def test_host_and_port(self):
        config = get_config({"HOST": "127.0.0.1", "PORT": "9001"})
        assert config.host == "127.0.0.1"
        assert config.port == 9001

    def test_explicit_config(self):
        assert AppConfig(data_dir="/var/lib/h").state_path == os.path.join("/var/lib/h", "state.json")


class TestRegulatorConfig:

    def test_defaults_are_filled(self):
        config = HomeostatConfig()
        assert config.regulator.policy is DEFAULT_REGULATOR_POLICY
        assert config.observability.enable_metrics is True

    def test_explicit_sections_are_kept(self):
        policy = RegulatorPolicy(max_active_explore_per_node=2)
        config = HomeostatConfig(
            regulator=RegulatorConfig(policy=policy),
            observability=ObservabilityConfig(enable_metrics=False),
        )
        assert config.regulator.policy is policy
        assert config.observability.enable_metrics is False
