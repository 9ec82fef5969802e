"""
Tests for the cleanup executor in utils/cleanup.py.

All tests work on real files inside a temporary directory; filesystem
failures are simulated by patching the disposer.
"""
import os
import sys
import pytest
from unittest.mock import patch, MagicMock

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from utils.cleanup import (
    CleanupConfig,
    RemovalStatus,
    PlanState,
    DeleteDisposer,
    BackupDisposer,
    create_disposer,
    remove_path,
    execute_plan,
    execute_decisions,
)
from utils.resolver import Resolution, ResolutionDecision, build_removal_plan
from conftest import create_files


def make_plan(root, name='movie.mkv', with_sidecars=('.nfo', '-thumb.jpg')):
    """Helper creating a video plus some sidecars and returning its plan."""
    stem = os.path.splitext(name)[0]
    create_files(root, [name] + [stem + suffix for suffix in with_sidecars])
    return build_removal_plan(name, os.path.join(root, name), 'test reason')


# ============================================================================
# Test Disposers
# ============================================================================

class TestDisposers:
    """Tests for the delete and backup disposers."""

    def test_create_delete_disposer(self):
        assert isinstance(create_disposer(CleanupConfig()), DeleteDisposer)

    def test_create_backup_disposer(self, temp_dir):
        disposer = create_disposer(CleanupConfig(backup_dir=temp_dir))

        assert isinstance(disposer, BackupDisposer)
        assert disposer.backup_dir == temp_dir

    def test_delete_disposer_removes_file(self, temp_dir):
        path = create_files(temp_dir, ['movie.mkv'])[0]

        DeleteDisposer().dispose(path)

        assert not os.path.exists(path)

    def test_backup_disposer_moves_file(self, temp_dir):
        path = create_files(temp_dir, ['lib/movie.mkv'])[0]
        backup_dir = os.path.join(temp_dir, 'backup')

        BackupDisposer(backup_dir).dispose(path)

        assert not os.path.exists(path)
        assert os.path.exists(os.path.join(backup_dir, 'movie.mkv'))

    def test_backup_disposer_does_not_overwrite(self, temp_dir):
        """Test a second file with the same name gets a numbered name."""
        first, second = create_files(temp_dir, ['a/movie.nfo', 'b/movie.nfo'])
        backup_dir = os.path.join(temp_dir, 'backup')
        disposer = BackupDisposer(backup_dir)

        disposer.dispose(first)
        disposer.dispose(second)

        assert sorted(os.listdir(backup_dir)) == ['movie.1.nfo', 'movie.nfo']

    def test_backup_disposer_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            BackupDisposer(os.path.join(temp_dir, 'backup')).dispose(os.path.join(temp_dir, 'missing.mkv'))


# ============================================================================
# Test remove_path
# ============================================================================

class TestRemovePath:
    """Tests for single path removal."""

    def test_removed(self, temp_dir):
        path = create_files(temp_dir, ['movie.mkv'])[0]

        outcome = remove_path(path, DeleteDisposer())

        assert outcome.status is RemovalStatus.REMOVED
        assert not os.path.exists(path)

    def test_dry_run_touches_nothing(self, temp_dir):
        path = create_files(temp_dir, ['movie.mkv'])[0]
        disposer = MagicMock()

        outcome = remove_path(path, disposer, dry_run=True)

        assert outcome.status is RemovalStatus.DRY_RUN
        assert 'Would remove' in outcome.message
        disposer.dispose.assert_not_called()
        assert os.path.exists(path)

    def test_missing_file(self, temp_dir):
        outcome = remove_path(os.path.join(temp_dir, 'missing.mkv'), DeleteDisposer())

        assert outcome.status is RemovalStatus.MISSING

    def test_permission_error_is_reported(self, temp_dir):
        path = create_files(temp_dir, ['movie.mkv'])[0]
        disposer = MagicMock()
        disposer.dispose.side_effect = PermissionError(13, 'Permission denied', path)

        outcome = remove_path(path, disposer)

        assert outcome.status is RemovalStatus.FAILED
        assert 'Permission denied' in outcome.message


# ============================================================================
# Test execute_plan
# ============================================================================

class TestExecutePlan:
    """Tests for executing a single removal plan."""

    def test_removes_primary_and_existing_sidecars(self, temp_dir):
        plan = make_plan(temp_dir)

        result = execute_plan(plan, CleanupConfig())

        assert result.state is PlanState.COMPLETED
        assert [o.path for o in result.outcomes] == plan.paths
        statuses = {o.path: o.status for o in result.outcomes}
        assert statuses[os.path.join(temp_dir, 'movie.mkv')] is RemovalStatus.REMOVED
        assert statuses[os.path.join(temp_dir, 'movie.nfo')] is RemovalStatus.REMOVED
        assert statuses[os.path.join(temp_dir, 'movie-thumb.jpg')] is RemovalStatus.REMOVED
        assert statuses[os.path.join(temp_dir, 'movie-poster.jpg')] is RemovalStatus.MISSING
        assert not any(os.path.exists(p) for p in plan.paths)

    def test_dry_run_reports_every_path(self, temp_dir):
        plan = make_plan(temp_dir)

        result = execute_plan(plan, CleanupConfig(dry_run=True))

        assert len(result.outcomes) == 5
        assert all(o.status is RemovalStatus.DRY_RUN for o in result.outcomes)
        assert os.path.exists(os.path.join(temp_dir, 'movie.mkv'))
        assert os.path.exists(os.path.join(temp_dir, 'movie.nfo'))

    def test_second_run_is_not_fatal(self, temp_dir):
        """Test running the same plan twice only reports missing files."""
        plan = make_plan(temp_dir)
        config = CleanupConfig()

        execute_plan(plan, config)
        second = execute_plan(plan, config)

        assert second.state is PlanState.COMPLETED
        assert all(o.status is RemovalStatus.MISSING for o in second.outcomes)

    def test_locked_sidecar_does_not_stop_the_rest(self, temp_dir):
        """Test one failing path leaves the others attempted and removed."""
        plan = make_plan(temp_dir, with_sidecars=('.nfo', '-thumb.jpg', '-fanart.jpg'))
        locked = os.path.join(temp_dir, 'movie-thumb.jpg')
        real_remove = os.remove

        def flaky_remove(path):
            if path == locked:
                raise PermissionError(13, 'Permission denied', path)
            real_remove(path)

        with patch('utils.cleanup.os.remove', side_effect=flaky_remove):
            result = execute_plan(plan, CleanupConfig())

        assert result.state is PlanState.PARTIALLY_FAILED
        statuses = {o.path: o.status for o in result.outcomes}
        assert statuses[locked] is RemovalStatus.FAILED
        assert os.path.exists(locked)
        assert not os.path.exists(os.path.join(temp_dir, 'movie.mkv'))
        assert not os.path.exists(os.path.join(temp_dir, 'movie.nfo'))
        assert not os.path.exists(os.path.join(temp_dir, 'movie-fanart.jpg'))

    def test_backup_mode_moves_files(self, temp_dir):
        plan = make_plan(os.path.join(temp_dir, 'lib'))
        backup_dir = os.path.join(temp_dir, 'backup')

        result = execute_plan(plan, CleanupConfig(backup_dir=backup_dir))

        assert result.state is PlanState.COMPLETED
        assert sorted(os.listdir(backup_dir)) == ['movie-thumb.jpg', 'movie.mkv', 'movie.nfo']


# ============================================================================
# Test execute_decisions
# ============================================================================

class TestExecuteDecisions:
    """Tests for executing all decisions of a run."""

    def make_decision(self, root, name):
        plan = make_plan(root, name)
        return ResolutionDecision(name, plan.primary_path, Resolution.REMOVE_PRIMARY, [plan])

    def test_no_decisions(self):
        summary = execute_decisions([], CleanupConfig())

        assert summary.results == []
        assert summary.removed == 0

    def test_counts(self, temp_dir):
        decisions = [
            self.make_decision(temp_dir, 'a.mkv'),
            self.make_decision(temp_dir, 'b.mkv'),
        ]

        summary = execute_decisions(decisions, CleanupConfig())

        # Each plan: video + nfo + thumb exist, fanart + poster missing
        assert summary.removed == 6
        assert summary.missing == 4
        assert summary.failed == 0
        assert [r.plan.primary_name for r in summary.results] == ['a.mkv', 'b.mkv']

    def test_dry_run_removes_nothing(self, temp_dir):
        decisions = [
            self.make_decision(temp_dir, 'a.mkv'),
            self.make_decision(temp_dir, 'b.mkv'),
        ]

        summary = execute_decisions(decisions, CleanupConfig(dry_run=True), max_workers=4)

        assert summary.dry_run == 10
        assert summary.removed == 0
        assert os.path.exists(os.path.join(temp_dir, 'a.mkv'))
        assert os.path.exists(os.path.join(temp_dir, 'b.nfo'))

    def test_shared_path_removed_once(self, temp_dir):
        """Test a path planned twice is removed once and then reported missing."""
        plan = make_plan(temp_dir, 'movie-C.mkv', with_sidecars=())
        decisions = [
            ResolutionDecision('x.mkv', '', Resolution.REMOVE_CONFLICTING_VARIANT, [plan]),
            ResolutionDecision('y.mkv', '', Resolution.REMOVE_CONFLICTING_VARIANT, [plan]),
        ]

        summary = execute_decisions(decisions, CleanupConfig())

        assert summary.failed == 0
        assert summary.removed == 1
        assert summary.missing == 9

    def test_failures_are_counted_not_raised(self, temp_dir):
        decisions = [self.make_decision(temp_dir, 'a.mkv')]

        with patch('utils.cleanup.os.remove', side_effect=PermissionError(13, 'Permission denied')):
            summary = execute_decisions(decisions, CleanupConfig())

        assert summary.failed == 5
        assert summary.removed == 0
        assert summary.results[0].state is PlanState.PARTIALLY_FAILED
