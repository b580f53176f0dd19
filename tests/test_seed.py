"""Tests for schema bootstrap and default user seeding."""
import pytest

from tasktrack_core import models
from tasktrack_core.seed import DEFAULT_USERS, seed_users


class TestSeedUsers:
    """Test insert-if-absent seeding."""

    def test_seeds_one_user_per_role(self, db):
        inserted = seed_users(db)

        assert inserted == 3
        users = db.query(models.User).order_by(models.User.id).all()
        assert [(u.username, u.role) for u in users] == [
            ("pm_user", models.UserRole.PM),
            ("dev_user", models.UserRole.DEV),
            ("qa_user", models.UserRole.QA),
        ]

    def test_reseeding_is_a_no_op(self, db):
        seed_users(db)
        first_ids = [u.id for u in db.query(models.User).order_by(models.User.id)]

        assert seed_users(db) == 0
        assert [u.id for u in db.query(models.User).order_by(models.User.id)] == first_ids

    def test_fills_in_missing_defaults_only(self, db):
        db.add(models.User(username="dev_user", role=models.UserRole.DEV))
        db.commit()

        assert seed_users(db) == 2
        assert db.query(models.User).count() == len(DEFAULT_USERS)

    def test_existing_users_are_kept(self, db):
        db.add(models.User(username="alice", role=models.UserRole.QA))
        db.commit()

        seed_users(db)

        assert db.query(models.User).filter(models.User.username == "alice").count() == 1
        assert db.query(models.User).count() == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
