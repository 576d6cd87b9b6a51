from passlib.hash import pbkdf2_sha256

from projectdash.storage import MemStorage


def test_memory_backend_is_seeded_before_use():
    storage = MemStorage()

    stats = storage.get_dashboard_stats()
    assert stats.active_projects == 5
    assert stats.tasks == 20
    assert stats.milestones == 6
    assert stats.completed == 8
    assert len(storage.get_insights()) == 5


def test_seeded_admin_password_is_hashed():
    admin = MemStorage().get_user_by_username("admin")

    assert admin.password != "password"
    assert pbkdf2_sha256.verify("password", admin.password)


def test_seeded_projects_include_one_at_risk():
    storage = MemStorage()

    at_risk = [p.name for p in storage.get_projects() if p.status == "At Risk"]
    assert at_risk == ["Mobile App Development"]
    assert len(storage.get_team_members(1)) == 1
