"""Tests for qwen_companion.version_manager module."""

import asyncio
import os
from unittest.mock import AsyncMock, patch
import pytest

from qwen_companion.detector import CliDetector
from qwen_companion.errors import CliNotInstalledError, CliProbeError, CompanionConfigError
from qwen_companion.types import DetectionResult, FeatureFlags, VersionInfo
from qwen_companion.version_manager import (
    CliVersionManager,
    VersionManagerConfig,
    require_cli,
)


def make_manager(probe, clock, **config):
    detector = CliDetector(probe=probe, clock=clock)
    return CliVersionManager(
        detector=detector,
        config=VersionManagerConfig(**config),
        clock=clock,
    )


class TestVersionManagerConfig:
    """Tests for VersionManagerConfig."""

    def test_default_ttl(self):
        assert VersionManagerConfig().cache_ttl == 30.0

    def test_negative_ttl_rejected(self):
        with pytest.raises(CompanionConfigError):
            VersionManagerConfig(cache_ttl=-0.1)

    def test_from_env(self):
        with patch.dict(os.environ, {"QWEN_CLI_CACHE_TTL": "5"}, clear=True):
            assert VersionManagerConfig.from_env().cache_ttl == 5.0

    def test_default_config_reads_env(self):
        with patch.dict(os.environ, {"QWEN_CLI_CACHE_TTL": "0"}):
            manager = CliVersionManager.get_instance()

        assert manager.config.cache_ttl == 0.0
        assert manager.detector.config.cache_ttl == 0.0


class TestGetInstance:
    """Tests for the process-wide instance."""

    def test_returns_same_instance(self):
        assert CliVersionManager.get_instance() is CliVersionManager.get_instance()

    def test_reset_instance(self):
        first = CliVersionManager.get_instance()
        CliVersionManager.reset_instance()
        assert CliVersionManager.get_instance() is not first


class TestIsVersionSupported:
    """Tests for CliVersionManager.is_version_supported."""

    def test_none_version(self, manager):
        assert manager.is_version_supported(None, "0.2.4") is False

    def test_invalid_version_format(self, manager):
        assert manager.is_version_supported("invalid.version", "0.2.4") is False

    def test_meets_minimum(self, manager):
        assert manager.is_version_supported("1.0.0", "0.2.4") is True

    def test_below_minimum(self, manager):
        assert manager.is_version_supported("0.1.0", "0.2.4") is False

    def test_exact_match(self, manager):
        assert manager.is_version_supported("0.2.4", "0.2.4") is True

    def test_different_number_of_parts(self, manager):
        assert manager.is_version_supported("0.2.4.1", "0.2.4") is True
        assert manager.is_version_supported("0.2", "0.2.4") is False


class TestGetFeatureFlags:
    """Tests for CliVersionManager.get_feature_flags."""

    def test_none_version(self, manager):
        assert manager.get_feature_flags(None) == FeatureFlags(
            supports_session_list=False,
            supports_session_load=False,
            supports_session_save=False,
        )

    def test_supported_version(self, manager):
        assert manager.get_feature_flags("1.0.0") == FeatureFlags(
            supports_session_list=True,
            supports_session_load=True,
            supports_session_save=False,
        )

    def test_unsupported_version(self, manager):
        assert manager.get_feature_flags("0.1.0") == FeatureFlags()


class TestResolve:
    """Tests for CliVersionManager.resolve."""

    @pytest.mark.asyncio
    async def test_fallback_when_detection_fails(self, clock):
        probe = AsyncMock(side_effect=CliProbeError("CLI not found"))
        manager = make_manager(probe, clock)

        result = await manager.resolve()

        assert result.version is None
        assert result.is_supported is False
        assert result.features == FeatureFlags()
        assert result.detection_result.is_installed is False

    @pytest.mark.asyncio
    async def test_fallback_on_unexpected_error(self, clock):
        probe = AsyncMock(side_effect=RuntimeError("boom"))
        manager = make_manager(probe, clock)

        assert await manager.resolve() == VersionInfo.unavailable()

    @pytest.mark.asyncio
    async def test_supported_version(self, manager, installed_result):
        result = await manager.resolve()

        assert result.version == "1.0.0"
        assert result.is_supported is True
        assert result.features == FeatureFlags(True, True, False)
        assert result.detection_result == installed_result

    @pytest.mark.asyncio
    async def test_unsupported_version(self, clock):
        probe = AsyncMock(return_value=DetectionResult(
            is_installed=True, version="0.1.0", cli_path="/usr/local/bin/qwen",
        ))
        manager = make_manager(probe, clock)

        result = await manager.resolve()

        assert result.version == "0.1.0"
        assert result.is_supported is False
        assert result.features == FeatureFlags(False, False, False)

    @pytest.mark.asyncio
    async def test_detection_without_version(self, clock):
        probe = AsyncMock(return_value=DetectionResult(
            is_installed=True, cli_path="/usr/local/bin/qwen",
        ))
        manager = make_manager(probe, clock)

        result = await manager.resolve()

        assert result.version is None
        assert result.is_supported is False
        assert result.features == FeatureFlags()
        assert result.detection_result.is_installed is True

    @pytest.mark.asyncio
    async def test_uses_cache_when_not_expired(self, manager, mock_probe, clock):
        first = await manager.resolve()
        clock.advance(10)
        second = await manager.resolve()

        assert mock_probe.await_count == 1
        assert second is first

    @pytest.mark.asyncio
    async def test_reprobes_after_ttl(self, manager, mock_probe, clock):
        await manager.resolve()
        clock.advance(31)
        await manager.resolve()

        assert mock_probe.await_count == 2

    @pytest.mark.asyncio
    async def test_force_refresh(self, manager, mock_probe):
        await manager.resolve()
        await manager.resolve(force_refresh=True)

        assert mock_probe.await_count == 2

    @pytest.mark.asyncio
    async def test_force_refresh_reflected_in_next_read(self, clock):
        old = DetectionResult(is_installed=True, version="0.1.0")
        new = DetectionResult(is_installed=True, version="0.2.4")
        probe = AsyncMock(side_effect=[old, new])
        manager = make_manager(probe, clock)

        assert (await manager.resolve()).version == "0.1.0"
        await manager.resolve(force_refresh=True)
        cached = await manager.resolve()

        assert cached.version == "0.2.4"
        assert cached.is_supported is True
        assert probe.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, clock, installed_result):
        probe = AsyncMock(side_effect=[CliProbeError("transient"), installed_result])
        manager = make_manager(probe, clock)

        assert (await manager.resolve()).is_supported is False
        assert (await manager.resolve()).is_supported is True
        assert probe.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_probe(self, clock, installed_result):
        release = asyncio.Event()

        async def slow_probe():
            await release.wait()
            return installed_result

        probe = AsyncMock(side_effect=slow_probe)
        manager = make_manager(probe, clock)

        first = asyncio.ensure_future(manager.resolve())
        second = asyncio.ensure_future(manager.resolve())
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(first, second)

        assert probe.await_count == 1
        assert results[0] is results[1]

    @pytest.mark.asyncio
    async def test_clear_cache_during_detection_does_not_repopulate(self, clock, installed_result):
        release = asyncio.Event()

        async def slow_probe():
            await release.wait()
            return installed_result

        probe = AsyncMock(side_effect=slow_probe)
        manager = make_manager(probe, clock)

        pending = asyncio.ensure_future(manager.resolve())
        await asyncio.sleep(0)
        manager.clear_cache()
        release.set()
        await pending

        probe.side_effect = None
        probe.return_value = installed_result
        await manager.resolve()

        assert probe.await_count == 2

    @pytest.mark.asyncio
    async def test_late_detection_does_not_overwrite_forced_refresh(self, clock):
        release = asyncio.Event()
        old = DetectionResult(is_installed=True, version="0.1.0")
        new = DetectionResult(is_installed=True, version="1.0.0")
        results = [old, new]

        async def probe():
            result = results.pop(0)
            if result is old:
                await release.wait()
            return result

        manager = make_manager(probe, clock)

        background = asyncio.ensure_future(manager.resolve())
        await asyncio.sleep(0)
        forced = await manager.resolve(force_refresh=True)
        release.set()
        await background

        assert forced.version == "1.0.0"
        assert (await manager.resolve()).version == "1.0.0"
        assert (await manager.detector.detect()).version == "1.0.0"


class TestClearCache:
    """Tests for CliVersionManager.clear_cache."""

    @pytest.mark.asyncio
    async def test_clear_cache_forces_probe(self, manager, mock_probe):
        await manager.resolve()
        assert mock_probe.await_count == 1

        manager.clear_cache()
        await manager.resolve()

        assert mock_probe.await_count == 2

    @pytest.mark.asyncio
    async def test_clear_cache_before_any_resolve(self, manager, mock_probe):
        manager.clear_cache()
        await manager.resolve()
        assert mock_probe.await_count == 1


class TestFeatureSupportMethods:
    """Tests for the async feature shortcuts."""

    @pytest.mark.asyncio
    async def test_session_list(self, manager):
        assert await manager.supports_session_list() is True

    @pytest.mark.asyncio
    async def test_session_load_unsupported(self, clock):
        probe = AsyncMock(return_value=DetectionResult(
            is_installed=True, version="0.1.0", cli_path="/usr/local/bin/qwen",
        ))
        manager = make_manager(probe, clock)

        assert await manager.supports_session_load() is False

    @pytest.mark.asyncio
    async def test_session_save_never_supported(self, clock):
        probe = AsyncMock(return_value=DetectionResult(is_installed=True, version="99.0.0"))
        manager = make_manager(probe, clock)

        assert await manager.supports_session_save() is False

    @pytest.mark.asyncio
    async def test_shortcuts_share_cache(self, manager, mock_probe):
        await manager.supports_session_list()
        await manager.supports_session_load()
        await manager.supports_session_save()

        assert mock_probe.await_count == 1


class TestRequireCli:
    """Tests for require_cli helper."""

    @pytest.mark.asyncio
    async def test_returns_info_when_installed(self, manager):
        info = await require_cli(manager)
        assert info.version == "1.0.0"

    @pytest.mark.asyncio
    async def test_raises_when_missing(self, clock):
        probe = AsyncMock(return_value=DetectionResult(is_installed=False, error="CLI not found"))
        manager = make_manager(probe, clock)

        with pytest.raises(CliNotInstalledError) as exc_info:
            await require_cli(manager)

        assert "CLI not found" in str(exc_info.value)
        assert "npm install -g @qwen-code/qwen-code@latest" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_raises_when_probe_fails(self, clock):
        manager = make_manager(AsyncMock(side_effect=CliProbeError("timed out")), clock)

        with pytest.raises(CliProbeError):
            await require_cli(manager)
