import pytest

from wtui.cache import CachedDiscoverer
from wtui.discovery import ServiceNotFoundError
from wtui.domain import Cancelled, Context, Repo


class FakeResolver:
    def __init__(self, repos=None, resolve_path="", find_all_error=None):
        self.repos = list(repos or [])
        self.resolve_path = resolve_path
        self.find_all_error = find_all_error
        self.find_all_hook = None
        self.find_all_calls = 0
        self.resolve_calls = 0

    def resolve(self, token, ctx=None):
        self.resolve_calls += 1
        return self.resolve_path

    def find_all(self, ctx=None):
        self.find_all_calls += 1
        if self.find_all_hook is not None:
            self.find_all_hook()
        if self.find_all_error is not None:
            raise self.find_all_error
        return list(self.repos)


def cancelled_context():
    ctx = Context()
    ctx.cancel()
    return ctx


def test_find_all_scans_once_then_uses_memory():
    repos = [Repo("api", "/repo/api")]
    wrapped = FakeResolver(repos)
    cached = CachedDiscoverer(wrapped)

    assert cached.find_all() == repos
    assert wrapped.find_all_calls == 1

    wrapped.repos = [Repo("changed", "/repo/changed")]
    assert cached.find_all() == repos
    assert wrapped.find_all_calls == 1


def test_find_all_raises_cancelled_on_memory_hit():
    repos = [Repo("api", "/repo/api")]
    wrapped = FakeResolver(repos)
    cached = CachedDiscoverer(wrapped)
    cached.find_all()

    with pytest.raises(Cancelled):
        cached.find_all(cancelled_context())
    assert wrapped.find_all_calls == 1

    assert cached.find_all() == repos


def test_find_all_raises_cancelled_before_scan():
    wrapped = FakeResolver(find_all_error=RuntimeError("scan should not run"))
    cached = CachedDiscoverer(wrapped)

    with pytest.raises(Cancelled):
        cached.find_all(cancelled_context())
    assert wrapped.find_all_calls == 0

    repos = [Repo("api", "/repo/api")]
    wrapped.repos = repos
    wrapped.find_all_error = None
    assert cached.find_all() == repos


def test_cancel_after_scan_does_not_mutate_cache():
    seed = [Repo("old", "/repo/old")]
    wrapped = FakeResolver(seed)
    cached = CachedDiscoverer(wrapped)
    cached.find_all()

    ctx = Context()
    wrapped.repos = [Repo("new", "/repo/new")]
    wrapped.find_all_hook = ctx.cancel
    with pytest.raises(Cancelled):
        cached.refresh(ctx)

    wrapped.find_all_hook = None
    wrapped.find_all_error = RuntimeError("scan should not run")
    assert cached.find_all() == seed


def test_refresh_bypasses_memory_and_rescans():
    wrapped = FakeResolver([Repo("first", "/repo/first")])
    cached = CachedDiscoverer(wrapped)
    cached.find_all()

    wrapped.repos = [Repo("fresh", "/repo/fresh")]
    got = cached.refresh()
    assert wrapped.find_all_calls == 2
    assert [r.name for r in got] == ["fresh"]

    wrapped.find_all_error = RuntimeError("scan should not run")
    assert [r.name for r in cached.find_all()] == ["fresh"]


def test_scan_error_propagates_and_leaves_cache_unloaded():
    wrapped = FakeResolver(find_all_error=RuntimeError("boom"))
    cached = CachedDiscoverer(wrapped)
    with pytest.raises(RuntimeError, match="boom"):
        cached.find_all()

    wrapped.find_all_error = None
    wrapped.repos = [Repo("api", "/repo/api")]
    assert cached.find_all() == [Repo("api", "/repo/api")]
    assert wrapped.find_all_calls == 2


def test_returned_list_is_a_copy():
    wrapped = FakeResolver([Repo("api", "/repo/api")])
    cached = CachedDiscoverer(wrapped)
    first = cached.find_all()
    first.append(Repo("extra", "/repo/extra"))
    assert cached.find_all() == [Repo("api", "/repo/api")]


def test_resolve_delegates_to_wrapped_resolver():
    wrapped = FakeResolver(resolve_path="/repo/api")
    cached = CachedDiscoverer(wrapped)
    assert cached.resolve("api") == "/repo/api"
    assert wrapped.resolve_calls == 1


def test_resolve_uses_find_all_cache():
    repos = [Repo("api", "/repo/api"), Repo("web", "/repo/web")]
    wrapped = FakeResolver(repos, resolve_path="/repo/fallback")
    cached = CachedDiscoverer(wrapped)
    cached.find_all()

    assert cached.resolve("api") == "/repo/api"
    assert wrapped.resolve_calls == 0

    with pytest.raises(ServiceNotFoundError):
        cached.resolve("missing")