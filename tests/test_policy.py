"""
Regulator Policy Tests

Resolution order: per-node override, then per-type, then global.
"""

import math

import pytest

from homeostat.contracts.ontology import NodeType
from homeostat.core.policy import (
    DEFAULT_REGULATOR_POLICY, RegulatorPolicy, get_policy_for_node,
    validate_regulator_policy,
)

from .fixtures import ORG, PERSONAL, TEAM


class TestPolicyResolution:

    def test_defaults(self):
        policy = get_policy_for_node(DEFAULT_REGULATOR_POLICY, PERSONAL)
        assert policy.max_active_explore_per_node == 1
        assert policy.max_active_stabilize_per_variable == 1

    def test_type_override(self):
        policy = RegulatorPolicy(max_active_explore_per_node_by_type={NodeType.ORG: 3})

        assert get_policy_for_node(policy, ORG).max_active_explore_per_node == 3
        assert get_policy_for_node(policy, PERSONAL).max_active_explore_per_node == 1

    def test_node_override_beats_type_override(self):
        policy = RegulatorPolicy(
            max_active_explore_per_node_by_type={NodeType.ORG: 3},
            max_active_explore_per_node_by_node={"Org:team-a": 5},
        )
        assert get_policy_for_node(policy, TEAM).max_active_explore_per_node == 5
        assert get_policy_for_node(policy, ORG).max_active_explore_per_node == 3

    def test_stabilize_resolution(self):
        policy = RegulatorPolicy(
            max_active_stabilize_per_variable=2,
            max_active_stabilize_per_variable_by_node={"Personal:personal": 4},
        )
        assert get_policy_for_node(policy, PERSONAL).max_active_stabilize_per_variable == 4
        assert get_policy_for_node(policy, ORG).max_active_stabilize_per_variable == 2


class TestPolicyValidation:

    def test_default_is_valid(self):
        assert validate_regulator_policy(DEFAULT_REGULATOR_POLICY) is DEFAULT_REGULATOR_POLICY

    def test_negative_global_limit(self):
        with pytest.raises(ValueError, match="max_active_explore_per_node must be >= 0"):
            validate_regulator_policy(RegulatorPolicy(max_active_explore_per_node=-1))

    @pytest.mark.parametrize("value", [math.inf, math.nan])
    def test_non_finite_limit(self, value):
        with pytest.raises(ValueError, match="must be finite"):
            validate_regulator_policy(RegulatorPolicy(max_active_stabilize_per_variable=value))

    def test_bad_override_names_its_key(self):
        policy = RegulatorPolicy(max_active_explore_per_node_by_type={NodeType.ORG: -2})
        with pytest.raises(ValueError, match=r"by_type\['Org'\]"):
            validate_regulator_policy(policy)
