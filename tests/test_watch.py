"""Tests for watch specification compilation and matching."""

import threading

import pytest

from refwatch.domain import HEAD, RemoteReference, RemoteReferenceSnapshot
from refwatch.errors import ConfigError, InvalidPatternError
from refwatch.watch import PatternSet, WatchMatcher, WatchSpecification


@pytest.fixture
def snapshot():
    return RemoteReferenceSnapshot.of(
        RemoteReference(HEAD, symbolic_target="refs/heads/master"),
        RemoteReference("refs/heads/master"),
        RemoteReference("refs/pull/42/head"),
    )


class TestPatternSet:
    """Tests for the combined pattern matcher."""

    def test_empty_set_matches_nothing(self):
        patterns = PatternSet([])
        assert not patterns.is_match("refs/heads/master")
        assert not patterns.is_match("")

    def test_any_pattern_matches(self):
        patterns = PatternSet([r"^refs/pull/\d+/head$", r"^refs/heads/release-"])
        assert patterns.is_match("refs/pull/7/head")
        assert patterns.is_match("refs/heads/release-1.0")
        assert not patterns.is_match("refs/heads/master")

    def test_group_free_patterns_are_joined(self):
        assert PatternSet([r"^a$", r"^b$"]).combined

    def test_patterns_with_groups_are_not_joined(self):
        patterns = PatternSet([r"^refs/heads/(\w)\1$", r"^x$"])
        assert not patterns.combined
        assert patterns.is_match("refs/heads/aa")
        assert not patterns.is_match("refs/heads/ab")
        assert patterns.is_match("x")

    def test_global_flags_keep_their_meaning(self):
        patterns = PatternSet([r"(?i)^refs/heads/feature", r"^refs/tags/"])
        assert not patterns.combined
        assert patterns.is_match("refs/heads/FEATURE-x")
        assert patterns.is_match("refs/tags/v1")
        assert not patterns.is_match("refs/TAGS/v1")

    def test_search_is_unanchored(self):
        patterns = PatternSet(["pull"])
        assert patterns.is_match("refs/pull/1/head")

    def test_invalid_pattern(self):
        with pytest.raises(InvalidPatternError) as excinfo:
            PatternSet([r"^ok$", "(unclosed"])
        assert excinfo.value.pattern == "(unclosed"
        assert excinfo.value.reason
        assert "(unclosed" in str(excinfo.value)


class TestWatchMatcherCompile:
    """Tests for WatchMatcher construction."""

    def test_invalid_pattern_is_config_error(self):
        with pytest.raises(ConfigError):
            WatchMatcher.compile([], ["refs/(heads"])

    def test_invalid_pattern_among_valid_ones(self):
        with pytest.raises(InvalidPatternError) as excinfo:
            WatchMatcher.compile(["refs/heads/master"], [r"^refs/pull/\d+/head$", "[z-a]"])
        assert excinfo.value.pattern == "[z-a]"

    def test_specification_round_trips(self):
        matcher = WatchMatcher.compile(["refs/heads/master"], ["^refs/tags/"])
        assert matcher.specification == WatchSpecification(("refs/heads/master",), ("^refs/tags/",))

    def test_specification_is_hashable(self):
        spec = WatchSpecification(["a"], ["b"])
        assert spec == WatchSpecification(("a",), ("b",))
        assert hash(spec) == hash(WatchSpecification(("a",), ("b",)))
        assert not spec.is_empty
        assert WatchSpecification().is_empty

    def test_matcher_is_immutable(self):
        matcher = WatchMatcher.compile([], [])
        with pytest.raises(AttributeError):
            matcher.extra = 1

    def test_repr_names_rules(self):
        matcher = WatchMatcher.compile(["refs/heads/master"], ["^refs/tags/"])
        assert "refs/heads/master" in repr(matcher)
        assert "^refs/tags/" in repr(matcher)


class TestWatchMatcherResolve:
    """Tests for WatchMatcher.resolve."""

    def test_example_scenario(self, snapshot):
        matcher = WatchMatcher.compile(["refs/heads/master"], [r"^refs/pull/\d+/head$"])
        assert matcher.resolve(snapshot) == {"refs/heads/master", "refs/pull/42/head"}

    def test_empty_specification_resolves_nothing(self, snapshot):
        matcher = WatchMatcher.compile([], [])
        assert matcher.resolve(snapshot) == frozenset()

    def test_empty_snapshot(self):
        matcher = WatchMatcher.compile(["refs/heads/master"], ["."])
        assert matcher.resolve(RemoteReferenceSnapshot()) == frozenset()

    def test_unmatched_exact_names_are_dropped(self, snapshot):
        matcher = WatchMatcher.compile(["refs/heads/develop", "refs/heads/master"], [])
        assert matcher.resolve(snapshot) == {"refs/heads/master"}

    def test_exact_match_is_verbatim(self, snapshot):
        matcher = WatchMatcher.compile(["refs/heads/master/", "heads/master", "refs/heads/Master"], [])
        assert matcher.resolve(snapshot) == frozenset()

    def test_symbolic_reference_tracked_under_target(self):
        snapshot = RemoteReferenceSnapshot.of(
            RemoteReference(HEAD, symbolic_target="refs/heads/main"),
        )
        matcher = WatchMatcher.compile([], ["main"])
        assert matcher.resolve(snapshot) == {"refs/heads/main"}

    def test_symbolic_name_itself_never_appears(self, snapshot):
        # HEAD would match "." but is flattened to its target first
        matcher = WatchMatcher.compile([HEAD], ["."])
        result = matcher.resolve(snapshot)
        assert HEAD not in result
        assert result == {"refs/heads/master", "refs/pull/42/head"}

    def test_exact_name_equal_to_symbolic_target(self):
        snapshot = RemoteReferenceSnapshot.of(
            RemoteReference(HEAD, symbolic_target="refs/heads/main"),
        )
        matcher = WatchMatcher.compile(["refs/heads/main"], [])
        assert matcher.resolve(snapshot) == {"refs/heads/main"}

    def test_name_satisfying_both_rules_counted_once(self, snapshot):
        matcher = WatchMatcher.compile(["refs/heads/master"], ["master", "^refs/heads/"])
        result = matcher.resolve(snapshot)
        assert sorted(result) == ["refs/heads/master"]

    def test_soundness(self, snapshot):
        exact = ["refs/heads/master", "refs/heads/gone"]
        patterns = [r"^refs/pull/"]
        matcher = WatchMatcher.compile(exact, patterns)
        flattened = set(snapshot.flatten())
        for name in matcher.resolve(snapshot):
            assert name in flattened
            assert name in exact or name.startswith("refs/pull/")

    def test_accepts_plain_iterables(self):
        matcher = WatchMatcher.compile(["refs/heads/a"], [])
        assert matcher.resolve([RemoteReference("refs/heads/a")]) == {"refs/heads/a"}
        assert matcher.resolve(iter([RemoteReference("refs/heads/a")])) == {"refs/heads/a"}

    def test_matches(self):
        matcher = WatchMatcher.compile(["refs/heads/master"], [r"^refs/pull/\d+/head$"])
        assert matcher.matches("refs/heads/master")
        assert matcher.matches("refs/pull/3/head")
        assert not matcher.matches("refs/pull/3/merge")

    def test_shared_between_threads(self, snapshot):
        matcher = WatchMatcher.compile(["refs/heads/master"], [r"^refs/pull/\d+/head$"])
        results = []

        def worker():
            for _ in range(100):
                results.append(matcher.resolve(snapshot))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 400
        assert all(r == {"refs/heads/master", "refs/pull/42/head"} for r in results)
