"""Unit tests for MigrationState."""

from mattermost_migrator.core.state import MigrationState
from mattermost_migrator.types import IdentitySource, SourceUser, TargetIdentity


class TestRecordEmitted:
    def test_records_thread_and_pointer(self):
        state = MigrationState()

        state.record_emitted("p1", 10, "spaces/S/threads/T1")

        assert state.messages.thread_map == {"p1": "spaces/S/threads/T1"}
        assert state.progress.last_imported_timestamp == 10
        assert state.progress.last_imported_post_id == "p1"
        assert state.progress.summary.imported == 1

    def test_no_thread_leaves_map_untouched(self):
        state = MigrationState()

        state.record_emitted("p1", 10, None)

        assert state.messages.thread_map == {}
        assert state.progress.last_imported_post_id == "p1"
        assert state.progress.summary.imported == 1


class TestThreadFor:
    def test_top_level_post(self):
        assert MigrationState().thread_for("") is None

    def test_known_root(self):
        state = MigrationState()
        state.messages.thread_map["root"] = "spaces/S/threads/T1"
        assert state.thread_for("root") == "spaces/S/threads/T1"

    def test_unknown_root(self):
        assert MigrationState().thread_for("missing") is None


class TestResetForRun:
    def _populated(self) -> MigrationState:
        state = MigrationState()
        state.record_emitted("p1", 10, "t1")
        state.identities.users["u1"] = SourceUser(id="u1", username="alice")
        state.identities.identities["alice"] = TargetIdentity(
            email="alice@example.com", source=IdentitySource.MANUAL
        )
        state.identities.valid_users["alice@example.com"] = True
        return state

    def test_clears_everything_by_default(self):
        state = self._populated()

        state.reset_for_run()

        assert state.messages.thread_map == {}
        assert state.progress.summary.imported == 0
        assert state.progress.last_imported_timestamp is None
        assert state.identities.users == {}
        assert state.identities.identities == {}
        assert state.identities.valid_users == {}

    def test_can_keep_identity_cache(self):
        state = self._populated()
        identities = state.identities

        state.reset_for_run(keep_identity_cache=True)

        assert state.messages.thread_map == {}
        assert state.progress.summary.imported == 0
        assert state.identities is identities
        assert "u1" in state.identities.users
        assert "alice" in state.identities.identities
