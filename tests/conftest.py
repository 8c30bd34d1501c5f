from datetime import UTC, datetime

import pytest

from uploadpy.core.auth_plugins import AuthRegistry
from uploadpy.core.directory import UserDirectory
from uploadpy.models.config import SiteConfig
from uploadpy.models.policy import ImportMode, Policy, UpdateMode
from uploadpy.models.user import UserRecord
from uploadpy.operations.batch_processor import UploadProcessor
from uploadpy.operations.commit_ops import RowCommitter
from uploadpy.operations.reconcile_ops import RowReconciler
from uploadpy.operations.tracker import NullTracker
from uploadpy.utils.display_utils import reset_shutdown_flag

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def fake_hash(plaintext: str) -> str:
    return f"hashed:{plaintext}"


@pytest.fixture(autouse=True)
def clear_shutdown_flag():
    """Make sure no test starts with a pending shutdown request."""
    reset_shutdown_flag()
    yield
    reset_shutdown_flag()


@pytest.fixture
def site():
    """Default site settings."""
    return SiteConfig()


@pytest.fixture
def directory():
    """Directory with the built-in accounts, a course and one regular user."""
    directory = UserDirectory.with_site_accounts()
    directory.add_course("math101", groups=("groupa",))
    directory.create(
        UserRecord(
            username="bobby",
            firstname="Bob",
            lastname="Builder",
            email="bob@example.com",
            city="Turku",
            password=fake_hash("Secret1!"),
            confirmed=True,
        )
    )
    return directory


@pytest.fixture
def make_policy():
    """Factory for policies; defaults to create-or-update with data-only."""

    def factory(
        import_mode: ImportMode = ImportMode.CREATE_OR_UPDATE,
        update_mode: UpdateMode = UpdateMode.DATA_ONLY,
        **kwargs,
    ) -> Policy:
        return Policy(import_mode=import_mode, update_mode=update_mode, **kwargs)

    return factory


@pytest.fixture
def make_reconciler(site, directory):
    """Factory for reconcilers bound to the directory fixture."""

    def factory(policy: Policy, **kwargs) -> RowReconciler:
        return RowReconciler(
            policy=policy,
            site=site,
            lookup=directory,
            auth_registry=AuthRegistry(enabled=site.enabled_auths),
            hasher=fake_hash,
            clock=lambda: FIXED_NOW,
            **kwargs,
        )

    return factory


@pytest.fixture
def run_upload(make_reconciler, directory):
    """Run raw rows through the full prepare and commit cycle."""

    def runner(policy: Policy, rows: list[dict[str, str]], tracker=None):
        processor = UploadProcessor(
            reconciler=make_reconciler(policy),
            committer=RowCommitter(directory, directory),
            tracker=tracker or NullTracker(),
        )
        return processor.run(list(enumerate(rows, start=2)))

    return runner
