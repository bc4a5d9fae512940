"""
Tests for options, session delegates, storage, audit loggers and metrics.
"""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tollgate import Auth, AuthOptions, MemorySession, MemoryStorage, Package, RedisSession
from tollgate.audit import (
    AuditEvent,
    FileAuditLogger,
    MemoryAuditLogger,
    create_audit_logger,
)
from tollgate.metrics import MetricConfig, MetricsCollector
from tollgate.types.errors import ConfigurationError, ErrorCode, UserNotFoundError


class TestAuthOptions:
    """Test option loading and validation"""

    def test_defaults(self):
        options = AuthOptions()
        assert options.cost == 8
        assert options.hash_schemes == ["bcrypt"]
        assert options.validate() is True

    def test_merged(self):
        options = AuthOptions().merged({"cost": 12})
        assert options.cost == 12
        assert options.hash_schemes == ["bcrypt"]

    def test_merged_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AuthOptions().merged({"salt": "x"})
        assert exc_info.value.details["config_key"] == "salt"

    @pytest.mark.parametrize("cost", [3, 32, "8", True])
    def test_invalid_cost(self, cost):
        with pytest.raises(ConfigurationError):
            AuthOptions(cost=cost).validate()

    def test_unknown_scheme(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AuthOptions(hash_schemes=["bcrypt", "nope"]).validate()
        assert exc_info.value.details["config_value"] == "nope"

    def test_empty_schemes(self):
        with pytest.raises(ConfigurationError):
            AuthOptions(hash_schemes=[]).validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TOLLGATE_COST", "10")
        monkeypatch.setenv("TOLLGATE_HASH_SCHEMES", "bcrypt, pbkdf2_sha256")
        monkeypatch.setenv("TOLLGATE_AUDIT_ENABLED", "no")
        monkeypatch.setenv("TOLLGATE_METRICS_ENABLED", "true")

        options = AuthOptions.from_env()
        assert options.cost == 10
        assert options.hash_schemes == ["bcrypt", "pbkdf2_sha256"]
        assert options.audit_enabled is False
        assert options.metrics_enabled is True

    def test_from_env_bad_cost(self, monkeypatch):
        monkeypatch.setenv("TOLLGATE_COST", "high")
        with pytest.raises(ConfigurationError):
            AuthOptions.from_env()

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "tollgate.yaml"
        path.write_text("cost: 6\nhash_schemes:\n  - pbkdf2_sha256\naudit_enabled: false\n")

        options = AuthOptions.from_file(str(path))
        assert options.cost == 6
        assert options.hash_schemes == ["pbkdf2_sha256"]
        assert options.audit_enabled is False

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "tollgate.json"
        path.write_text(json.dumps({"cost": 9}))
        assert AuthOptions.from_file(str(path)).cost == 9

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            AuthOptions.from_file(str(tmp_path / "missing.yaml"))

    def test_unsupported_file_format(self, tmp_path):
        path = tmp_path / "tollgate.ini"
        path.write_text("[tollgate]\n")
        with pytest.raises(ConfigurationError):
            AuthOptions.from_file(str(path))

    def test_non_bcrypt_scheme(self):
        auth = Auth("pbkdf2", MemorySession(), MemoryStorage(), {"hash_schemes": ["pbkdf2_sha256"]})
        password_hash = auth.hash_password("secret")
        assert password_hash.startswith("$pbkdf2-sha256$")
        assert auth.check_password("secret", password_hash) is True


class TestErrors:
    """Test the error hierarchy"""

    def test_user_not_found(self):
        error = UserNotFoundError(7)
        assert error.error_code is ErrorCode.USER_NOT_FOUND
        assert str(error) == "user_not_found: User 7 not found."
        assert error.to_dict() == {
            "error": "user_not_found",
            "message": "User 7 not found.",
            "details": {"user_id": "7"},
        }


class TestMemorySession:
    """Test the in-memory session"""

    @pytest.mark.asyncio
    async def test_roundtrip(self):
        session = MemorySession()
        assert await session.read("admin") is None

        await session.write("admin", 3)
        await session.write("frontend", 4)
        assert await session.read("admin") == 3

        await session.delete("admin")
        assert await session.read("admin") is None
        assert await session.read("frontend") == 4

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        await MemorySession().delete("nothing")


class TestRedisSession:
    """Test the Redis session against a mocked client"""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.set = AsyncMock()
        client.get = AsyncMock(return_value=None)
        client.delete = AsyncMock()
        client.aclose = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_write(self, client):
        session = RedisSession(client, ttl=3600)
        await session.write("admin", 42)
        client.set.assert_awaited_once_with("tollgate:session:admin", "42", ex=3600)

    @pytest.mark.asyncio
    async def test_read(self, client):
        client.get.return_value = b"42"
        session = RedisSession(client, key_prefix="app:", id_type=int)

        assert await session.read("admin") == 42
        client.get.assert_awaited_once_with("app:admin")

    @pytest.mark.asyncio
    async def test_read_missing(self, client):
        assert await RedisSession(client).read("admin") is None

    @pytest.mark.asyncio
    async def test_delete_and_close(self, client):
        session = RedisSession(client)
        await session.delete("admin")
        await session.close()

        client.delete.assert_awaited_once_with("tollgate:session:admin")
        client.aclose.assert_awaited_once()

    def test_from_url(self):
        with patch("tollgate.session.redis_session.redis.from_url") as from_url:
            session = RedisSession.from_url("redis://localhost:6379/0", ttl=60)

        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
        assert session.client is from_url.return_value
        assert session.ttl == 60

    @pytest.mark.asyncio
    async def test_as_auth_session(self, client):
        storage = MemoryStorage()
        storage.add_user(42, "zoe")
        client.get.return_value = "42"

        auth = Auth("admin", RedisSession(client, id_type=int), storage)
        await auth.add_package_to_user(42, Package(rules={"login": True}))

        assert await auth.can("login") is True
        assert (await auth.user()).id == 42


class TestMemoryStorage:
    """Test the in-memory storage delegate"""

    @pytest.mark.asyncio
    async def test_fetch_by_identifier(self):
        storage = MemoryStorage()
        storage.add_user(1, "alice", "hash", email="alice@example.com")

        record = await storage.fetch_user_by_identifier("a", "alice")
        assert record.id == 1
        assert record.password_hash == "hash"
        assert record.to_dict() == {
            "id": 1,
            "identifier": "alice",
            "attributes": {"email": "alice@example.com"},
        }
        assert await storage.fetch_user_by_identifier("a", "bob") is None

    @pytest.mark.asyncio
    async def test_user_attributes(self):
        storage = MemoryStorage()
        storage.add_user(1, "alice", forums=[3])
        user = await storage.fetch_user_representation("a", 1)

        assert user.forums == [3]
        with pytest.raises(AttributeError):
            user.missing

    @pytest.mark.asyncio
    async def test_memberships_per_auth_name(self):
        storage = MemoryStorage()
        user = storage.add_user(1, "alice")
        package = Package(name="Basic")

        await storage.add_package_to_user("admin", user, package)
        assert await storage.user_has_package("admin", user, package) is True
        assert await storage.user_has_package("frontend", user, package) is False

        await storage.remove_package_from_user("admin", user, package)
        assert await storage.fetch_packages_for_user("admin", user) == []

    @pytest.mark.asyncio
    async def test_overrides(self):
        storage = MemoryStorage()
        user = storage.add_user(1, "alice")

        assert await storage.override_permission_for_user("a", user, "login", False) is True
        assert storage.list_overrides("a", 1) == [("login", False)]
        assert await storage.fetch_overrides_for_user("a", user) == {"login": False}

        assert await storage.reset_overrides_for_user("a", user) is True
        assert await storage.fetch_overrides_for_user("a", user) == {}

    @pytest.mark.asyncio
    async def test_remove_user(self):
        storage = MemoryStorage()
        user = storage.add_user(1, "alice")
        await storage.add_package_to_user("a", user, Package())

        assert storage.remove_user(1) is True
        assert storage.remove_user(1) is False
        assert storage.get_user_count() == 0
        assert await storage.fetch_packages_for_user("a", user) == []
        assert await storage.override_permission_for_user("a", user, "x", True) is False


class TestAuditLoggers:
    """Test audit logger implementations"""

    @pytest.mark.asyncio
    async def test_memory_filtering(self):
        audit_logger = MemoryAuditLogger(max_entries=10)
        await audit_logger.log(AuditEvent("login", "admin", user_id="1"))
        await audit_logger.log(AuditEvent("logout", "admin", user_id="1"))
        await audit_logger.log(AuditEvent("login", "frontend", user_id="2"))

        assert len(await audit_logger.get_events()) == 3
        assert len(await audit_logger.get_events(event_type="login")) == 2
        assert len(await audit_logger.get_events(auth_name="frontend")) == 1
        assert len(await audit_logger.get_events(user_id="1")) == 2

        later = datetime.now() + timedelta(hours=1)
        assert await audit_logger.get_events(start_time=later) == []

    @pytest.mark.asyncio
    async def test_memory_bounded(self):
        audit_logger = MemoryAuditLogger(max_entries=2)
        for n in range(5):
            await audit_logger.log(AuditEvent("login", "admin", user_id=str(n)))

        assert [e.user_id for e in await audit_logger.get_events()] == ["3", "4"]

    @pytest.mark.asyncio
    async def test_file_logger(self, tmp_path):
        path = tmp_path / "audit.log"
        audit_logger = create_audit_logger("file", file_path=str(path))
        assert isinstance(audit_logger, FileAuditLogger)

        await audit_logger.log(AuditEvent("package_added", "admin", user_id="1", details={"package": "Basic"}))
        with open(path, "a") as f:
            f.write("not json\n")
        await audit_logger.log(AuditEvent("logout", "admin", user_id="1"))

        events = await audit_logger.get_events()
        assert [e.event_type for e in events] == ["package_added", "logout"]
        assert events[0].details == {"package": "Basic"}

    @pytest.mark.asyncio
    async def test_file_logger_missing_file(self, tmp_path):
        assert await FileAuditLogger(str(tmp_path / "none.log")).get_events() == []

    def test_factory(self):
        assert isinstance(create_audit_logger(), MemoryAuditLogger)
        with pytest.raises(ValueError):
            create_audit_logger("syslog")

    def test_event_id_generated(self):
        event = AuditEvent("login", "admin")
        assert event.event_id
        assert AuditEvent.from_dict(event.to_dict()).event_id == event.event_id


class TestMetrics:
    """Test Prometheus metrics recorded by the engine"""

    @pytest.mark.asyncio
    async def test_checks_and_rebuilds(self):
        storage = MemoryStorage()
        storage.add_user(1, "alice")
        metrics = MetricsCollector()
        auth = Auth("forum", MemorySession(), storage, metrics=metrics)

        await auth.add_package_to_user(1, Package(rules={"login": True}))
        await auth.user_can(1, "login")
        await auth.user_can(1, "missing")
        await auth.user_can(99, "login")

        registry = metrics.registry
        assert registry.get_sample_value(
            "tollgate_permission_checks_total", {"auth": "forum", "result": "allowed"}) == 1.0
        assert registry.get_sample_value(
            "tollgate_permission_checks_total", {"auth": "forum", "result": "denied"}) == 2.0
        # One rebuild for the add, one failed attempt for the unknown user
        assert registry.get_sample_value(
            "tollgate_permission_rebuilds_total", {"auth": "forum"}) == 2.0
        assert b"tollgate_permission_rebuild_duration_seconds" in metrics.export()
        assert metrics.content_type.startswith("text/plain")

    @pytest.mark.asyncio
    async def test_login_attempts(self):
        storage = MemoryStorage()
        metrics = MetricsCollector()
        auth = Auth("forum", MemorySession(), storage, {"cost": 4}, metrics=metrics)
        storage.add_user(1, "alice", auth.hash_password("pw"))

        await auth.login("alice", "pw")
        await auth.login("alice", "nope")

        registry = metrics.registry
        assert registry.get_sample_value(
            "tollgate_login_attempts_total", {"auth": "forum", "status": "success"}) == 1.0
        assert registry.get_sample_value(
            "tollgate_login_attempts_total", {"auth": "forum", "status": "failure"}) == 1.0

    def test_disabled(self):
        metrics = MetricsCollector(MetricConfig(enabled=False))
        metrics.record_check("forum", True)
        with metrics.time_rebuild("forum"):
            pass
        assert metrics.registry.get_sample_value(
            "tollgate_permission_checks_total", {"auth": "forum", "result": "allowed"}) is None
