"""
Tests for branch-aware versioning.

Covers:
- Branch pattern matching (exact beats wildcard)
- Version formats per branch
- Bump strategies and build counters
"""

import pytest

from reentry.branch_aware import (
    BranchAwareManager,
    BranchAwarenessConfig,
    BranchConfig,
    BranchConfigError,
    BuildCounters,
    bump_semver,
    create_default_branch_awareness_config,
    extract_base_version,
    render_tag,
)


def make_manager(branch="main", counters=None, config=None):
    return BranchAwareManager(
        config or create_default_branch_awareness_config(),
        counters=counters,
        branch_resolver=lambda: branch,
    )


class TestSemverHelpers:

    @pytest.mark.parametrize("version,expected", [
        ("1.8.172", "1.8.172"),
        ("1.8.172-dev.395", "1.8.172"),
        ("1.8.172-feature/new-ui.3", "1.8.172"),
        ("v2.0.0+build.5", "2.0.0"),
        ("not-a-version", "not-a-version"),
    ])
    def test_extract_base_version(self, version, expected):
        assert extract_base_version(version) == expected

    @pytest.mark.parametrize("release_type,expected", [
        ("patch", "1.8.173"),
        ("minor", "1.9.0"),
        ("major", "2.0.0"),
    ])
    def test_bump_semver(self, release_type, expected):
        assert bump_semver("1.8.172", release_type) == expected

    def test_bump_semver_rejects_bad_type(self):
        with pytest.raises(ValueError, match="Invalid release type"):
            bump_semver("1.0.0", "huge")

    def test_bump_semver_rejects_bad_version(self):
        with pytest.raises(ValueError, match="Invalid semantic version"):
            bump_semver("one.two", "patch")

    def test_render_tag(self):
        assert render_tag("v{version}", "1.2.3") == "v1.2.3"
        assert render_tag("release", "1.2.3") == "release"


class TestBranchMatching:

    def test_exact_match(self):
        assert make_manager().match_branch_pattern("develop") == "develop"

    def test_wildcard_match(self):
        manager = make_manager()
        assert manager.match_branch_pattern("feature/new-ui") == "feature/*"
        assert manager.match_branch_pattern("hotfix/urgent") == "hotfix/*"

    def test_no_match(self):
        assert make_manager().match_branch_pattern("release/1.0") is None

    def test_exact_beats_wildcard(self):
        config = BranchAwarenessConfig(branches={
            "feature/*": BranchConfig(version_format="feature"),
            "feature/special": BranchConfig(version_format="semantic"),
        })
        assert make_manager(config=config).match_branch_pattern("feature/special") == "feature/special"

    def test_first_wildcard_wins(self):
        config = BranchAwarenessConfig(branches={
            "feat*": BranchConfig(tag_format="a-{version}"),
            "feature/*": BranchConfig(tag_format="b-{version}"),
        })
        assert make_manager(config=config).match_branch_pattern("feature/x") == "feat*"

    def test_regex_characters_are_literal(self):
        config = BranchAwarenessConfig(branches={"release.v*": BranchConfig()})
        manager = make_manager(config=config)

        assert manager.match_branch_pattern("release.v2") == "release.v*"
        assert manager.match_branch_pattern("releaseXv2") is None


class TestDetectBranchConfig:

    def test_unknown_branch_falls_back_to_default(self):
        config = make_manager().detect_branch_config("release/1.0")
        assert config.version_format == "semantic"

    def test_uses_current_branch(self):
        assert make_manager(branch="develop").detect_branch_config().version_format == "dev"

    def test_missing_default_raises(self):
        config = BranchAwarenessConfig(default_branch="trunk", branches={"develop": BranchConfig()})

        with pytest.raises(BranchConfigError) as exc:
            make_manager(config=config).detect_branch_config("release/1.0")
        assert exc.value.branch == "release/1.0"


class TestBumpVersionBranchAware:

    def test_main_bumps_semver(self):
        manager = make_manager()
        version = manager.bump_version_branch_aware("1.8.172", "minor", manager.detect_branch_config("main"))
        assert version == "1.9.0"

    def test_develop_keeps_base_with_explicit_build(self):
        manager = make_manager()
        branch_config = manager.detect_branch_config("develop")

        version = manager.bump_version_branch_aware("1.8.172-dev.395", "patch", branch_config, "develop", 396)
        assert version == "1.8.172-dev.396"

    def test_feature_branch_uses_branch_name(self):
        manager = make_manager()
        branch_config = manager.detect_branch_config("feature/new-ui")

        version = manager.bump_version_branch_aware("1.8.172", "major", branch_config, "feature/new-ui")
        assert version == "1.8.172-feature/new-ui.1"

    def test_hotfix_with_current_branch(self):
        manager = make_manager(branch="hotfix/urgent")
        branch_config = manager.detect_branch_config()

        assert manager.bump_version_branch_aware("2.0.1", "patch", branch_config) == "2.0.1-hotfix/urgent.1"

    def test_build_zero_is_respected(self):
        manager = make_manager()
        branch_config = manager.detect_branch_config("develop")
        assert manager.format_version("1.0.0", branch_config, "develop", 0) == "1.0.0-dev.0"

    def test_counters_advance_per_key(self):
        counters = BuildCounters()
        manager = make_manager(counters=counters)
        develop = manager.detect_branch_config("develop")
        feature = manager.detect_branch_config("feature/a")

        assert manager.format_version("1.0.0", develop, "develop") == "1.0.0-dev.1"
        assert manager.format_version("1.0.0", develop, "develop") == "1.0.0-dev.2"
        assert manager.format_version("1.0.0", feature, "feature/a") == "1.0.0-feature/a.1"
        assert counters.peek("dev") == 3

    def test_explicit_build_does_not_advance_counter(self):
        counters = BuildCounters()
        manager = make_manager(counters=counters)
        manager.format_version("1.0.0", manager.detect_branch_config("develop"), "develop", 42)
        assert counters.peek("dev") == 1

    @pytest.mark.parametrize("build", [-1, 1.5, "3", True])
    def test_invalid_build_number(self, build):
        manager = make_manager()
        with pytest.raises(ValueError, match="Build number"):
            manager.bump_version_branch_aware("1.0.0", "patch", manager.detect_branch_config("develop"), "develop", build)

    def test_invalid_release_type(self):
        manager = make_manager()
        with pytest.raises(ValueError, match="Invalid release type"):
            manager.bump_version_branch_aware("1.0.0", "micro", manager.detect_branch_config("develop"))

    def test_semantic_bump_of_unparseable_version(self):
        manager = make_manager()
        with pytest.raises(ValueError):
            manager.bump_version_branch_aware("latest", "patch", manager.detect_branch_config("main"))


class TestBuildCounters:

    def test_initial_values_and_reset(self):
        counters = BuildCounters({"dev": 10})

        assert counters.next("dev") == 10
        assert counters.to_dict() == {"dev": 11}
        counters.reset("dev")
        assert counters.peek("dev") == 1
        counters.next("x")
        counters.reset()
        assert counters.to_dict() == {}


class TestConfigSerialization:

    def test_default_config_roundtrip(self):
        config = create_default_branch_awareness_config()
        assert BranchAwarenessConfig.from_dict(config.to_dict()) == config

    def test_manager_flags(self):
        manager = make_manager()
        assert manager.is_enabled() is False
        assert manager.get_sync_files(manager.detect_branch_config("main")) == [
            "package.json",
            "version.production.json",
        ]
