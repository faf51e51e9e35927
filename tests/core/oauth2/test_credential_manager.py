"""Tests for CredentialManager."""

import asyncio

import pytest

from core.oauth2.exceptions import CredentialRefreshError
from core.oauth2.manager import DEFAULT_MAX_AGE_SECONDS, CredentialManager
from core.oauth2.models import Credential
from core.oauth2.providers.base import BaseCredentialProvider


class MockCredentialProvider(BaseCredentialProvider):
    """Mock provider handing out token_1, token_2, ..."""

    def __init__(self, provider_name: str = "test_provider", delay: float = 0):
        super().__init__(provider_name)
        self.refresh_calls = 0
        self.should_fail = False
        self.delay = delay
        self.closed = False

    async def refresh(self, issued_at: float) -> Credential:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.should_fail:
            raise CredentialRefreshError("Mock refresh failure")
        self.refresh_calls += 1
        return Credential(f"token_{self.refresh_calls}", issued_at=issued_at)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def provider():
    return MockCredentialProvider()


@pytest.fixture
def manager(provider, fake_clock):
    return CredentialManager(provider, clock=fake_clock)


class TestGetToken:
    def test_default_threshold_is_fifty_minutes(self, provider):
        assert CredentialManager(provider).max_age_seconds == DEFAULT_MAX_AGE_SECONDS == 3000

    def test_starts_empty(self, manager):
        assert manager.credential is None
        assert manager.get_credential_info() is None

    @pytest.mark.asyncio
    async def test_first_use_refreshes(self, manager, provider, fake_clock):
        token = await manager.get_token()

        assert token == "token_1"
        assert provider.refresh_calls == 1
        assert manager.credential.issued_at == fake_clock.now()

    @pytest.mark.asyncio
    async def test_fresh_token_reused(self, manager, provider, fake_clock):
        await manager.get_token()
        fake_clock.advance(2999)

        assert await manager.get_token() == "token_1"
        assert provider.refresh_calls == 1

    @pytest.mark.asyncio
    async def test_stale_token_refreshed_proactively(self, manager, provider, fake_clock):
        await manager.get_token()
        fake_clock.advance(3000)

        assert await manager.get_token() == "token_2"
        assert provider.refresh_calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_first_use_refreshes_once(self, fake_clock):
        provider = MockCredentialProvider(delay=0.01)
        manager = CredentialManager(provider, clock=fake_clock)

        tokens = await asyncio.gather(*(manager.get_token() for _ in range(5)))

        assert set(tokens) == {"token_1"}
        assert provider.refresh_calls == 1

    @pytest.mark.asyncio
    async def test_refresh_failure_propagates_and_keeps_old_credential(
        self, manager, provider, fake_clock
    ):
        await manager.get_token()
        fake_clock.advance(3600)
        provider.should_fail = True

        with pytest.raises(CredentialRefreshError):
            await manager.get_token()

        assert manager.credential.access_token == "token_1"


class TestForcedRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_token(self, manager, provider):
        await manager.get_token()

        assert await manager.refresh(rejected_token="token_1") == "token_2"
        assert provider.refresh_calls == 2

    @pytest.mark.asyncio
    async def test_refresh_without_rejected_token_always_refreshes(self, manager, provider):
        await manager.refresh()
        await manager.refresh()

        assert provider.refresh_calls == 2

    @pytest.mark.asyncio
    async def test_already_replaced_token_not_refreshed_again(self, manager, provider):
        await manager.get_token()
        await manager.refresh(rejected_token="token_1")

        # A second caller rejected by the same old token reuses the new one
        assert await manager.refresh(rejected_token="token_1") == "token_2"
        assert provider.refresh_calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_rejections_refresh_once(self, fake_clock):
        provider = MockCredentialProvider(delay=0.01)
        manager = CredentialManager(provider, clock=fake_clock)
        await manager.get_token()

        tokens = await asyncio.gather(
            *(manager.refresh(rejected_token="token_1") for _ in range(3))
        )

        assert set(tokens) == {"token_2"}
        assert provider.refresh_calls == 2

    @pytest.mark.asyncio
    async def test_refresh_resets_age(self, manager, fake_clock):
        await manager.get_token()
        fake_clock.advance(2000)
        await manager.refresh(rejected_token="token_1")
        fake_clock.advance(2000)

        # 2000s since the reactive refresh: still fresh
        assert await manager.get_token() == "token_2"


class TestDiagnosticsAndLifecycle:
    @pytest.mark.asyncio
    async def test_credential_info(self, manager, fake_clock):
        await manager.get_token()
        fake_clock.advance(120)

        info = manager.get_credential_info()

        assert info["provider_name"] == "test_provider"
        assert info["age_seconds"] == 120
        assert info["is_stale"] is False
        assert info["refresh_count"] == 1
        assert "token_1" not in str(info)

    @pytest.mark.asyncio
    async def test_clear_forces_refresh(self, manager, provider):
        await manager.get_token()
        manager.clear()

        assert await manager.get_token() == "token_2"

    @pytest.mark.asyncio
    async def test_close_closes_provider(self, manager, provider):
        await manager.close()
        assert provider.closed is True
