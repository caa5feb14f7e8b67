"""
Migration Pipeline Tests
========================

Every historical document version must lift to the current shape via
the ordered step chain, report where it came from, and validate
independently afterwards.
"""

import copy

import pytest

from homeostat.contracts.base import EPOCH_ISO
from homeostat.contracts.ontology import SCHEMA_VERSION
from homeostat.schema.migrations import MIGRATION_CHAIN, node_ref_from_legacy
from homeostat.schema.pipeline import MigrationStatus, detect_version, migrate_to_latest
from homeostat.schema.versions import VALIDATORS, is_valid_state

from .fixtures import T1, T2, legacy_doc, seeded_state


LEGACY_VERSIONS = [version for version, _, _ in MIGRATION_CHAIN]


# =============================================================================
# CHAIN TESTS
# =============================================================================

class TestMigrationChain:

    def test_chain_covers_every_legacy_version_in_order(self):
        assert LEGACY_VERSIONS == list(range(SCHEMA_VERSION))

    @pytest.mark.parametrize("version", LEGACY_VERSIONS)
    def test_builder_matches_exactly_one_version(self, version):
        """Sanity check on the fixture itself."""
        doc = legacy_doc(version)
        matching = [v for v, is_valid in VALIDATORS.items() if is_valid(doc)]
        assert matching == [version]

    @pytest.mark.parametrize("version", LEGACY_VERSIONS)
    def test_every_version_migrates_to_current(self, version):
        result = migrate_to_latest(legacy_doc(version))

        assert result.status == MigrationStatus.MIGRATED
        assert result.from_version == version
        assert result.state.schema_version == SCHEMA_VERSION
        assert is_valid_state(result.state.to_dict())

    @pytest.mark.parametrize("version", LEGACY_VERSIONS)
    def test_migrated_state_has_canonical_nodes(self, version):
        state = migrate_to_latest(legacy_doc(version)).state
        ids = [n.id for n in state.nodes]
        assert ids == ["personal", "org", "system:becoming-engine"]

    @pytest.mark.parametrize("version", LEGACY_VERSIONS)
    def test_migration_does_not_mutate_input(self, version):
        doc = legacy_doc(version)
        before = copy.deepcopy(doc)
        migrate_to_latest(doc)
        assert doc == before

    @pytest.mark.parametrize("version", LEGACY_VERSIONS)
    def test_migrated_document_is_then_current(self, version):
        migrated = migrate_to_latest(legacy_doc(version)).state
        again = migrate_to_latest(migrated.to_dict())

        assert again.status == MigrationStatus.CURRENT
        assert again.from_version is None
        assert again.state == migrated


class TestStepDefaults:

    def test_legacy_node_strings_become_refs(self):
        state = migrate_to_latest(legacy_doc(0)).state
        assert state.variables[0].node.key == "Personal:personal"
        assert state.episodes[0].node.key == "Org:org"

    def test_unknown_legacy_node_maps_to_org(self):
        assert node_ref_from_legacy("Personal") == {"type": "Personal", "id": "personal"}
        assert node_ref_from_legacy("Other") == {"type": "Org", "id": "org"}

    def test_episode_timestamps_backfilled_with_epoch(self):
        episode = migrate_to_latest(legacy_doc(3)).state.episodes[0]
        assert episode.opened_at == EPOCH_ISO
        assert episode.closed_at == EPOCH_ISO

    def test_active_episode_gets_no_closed_at(self):
        doc = legacy_doc(3)
        doc["episodes"][0]["status"] = "Active"
        episode = migrate_to_latest(doc).state.episodes[0]
        assert episode.closed_at is None

    def test_note_metadata_backfilled(self):
        note = migrate_to_latest(legacy_doc(5)).state.notes[0]
        assert note.created_at == EPOCH_ISO
        assert note.tags == ()

    def test_later_versions_keep_their_own_timestamps(self):
        state = migrate_to_latest(legacy_doc(9)).state
        assert state.episodes[0].opened_at == T1
        assert state.notes[0].created_at == T2

    def test_existing_canonical_node_is_not_duplicated(self):
        doc = legacy_doc(12)
        doc["nodes"] = [{"id": "personal", "kind": "agent", "name": "Me", "createdAt": T1}]
        state = migrate_to_latest(doc).state

        assert [n.id for n in state.nodes] == ["personal", "org", "system:becoming-engine"]
        assert state.nodes[0].name == "Me"


class TestPipelineOutcomes:

    def test_current_document_is_current(self):
        doc = seeded_state().to_dict()
        result = migrate_to_latest(doc)

        assert result.status == MigrationStatus.CURRENT
        assert result.state == seeded_state()
        assert result.is_valid

    @pytest.mark.parametrize("garbage", [None, "{}", 7, [], {"variables": "nope"}])
    def test_garbage_is_invalid(self, garbage):
        result = migrate_to_latest(garbage)

        assert result.status == MigrationStatus.INVALID
        assert result.state is None
        assert not result.is_valid

    def test_old_extra_key_with_wrong_type_today_is_invalid(self):
        """V3 tolerated any variable description; the current shape does not."""
        doc = legacy_doc(3)
        doc["variables"][0]["description"] = 5
        assert detect_version(doc) == 3
        assert migrate_to_latest(doc).status == MigrationStatus.INVALID

    def test_detect_version(self):
        assert detect_version(legacy_doc(0)) == 0
        assert detect_version(legacy_doc(11)) == 11
        assert detect_version({"schemaVersion": 99}) is None
