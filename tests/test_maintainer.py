"""Tests for backlink graph maintenance.

Most tests run against an in-memory SQLite database through the real store
adapters.  Failure and concurrency tests use small hand-written stores.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from typing import Generator, Iterable

import pytest

from wikigraph.db.articles import create_article, update_article
from wikigraph.db.backlinks import insert_backlinks, list_backlinks
from wikigraph.db.connection import get_connection
from wikigraph.db.migrations import init_db
from wikigraph.db.stores import SqliteArticleStore, SqliteBacklinkStore
from wikigraph.links import BacklinkMaintainer, BacklinkQueries


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def maintainer(conn: sqlite3.Connection) -> BacklinkMaintainer:
    return BacklinkMaintainer(SqliteArticleStore(conn), SqliteBacklinkStore(conn))


@pytest.fixture()
def queries(conn: sqlite3.Connection) -> BacklinkQueries:
    return BacklinkQueries(SqliteArticleStore(conn), SqliteBacklinkStore(conn))


def _edges(conn: sqlite3.Connection, server_id: str = "srv") -> set[tuple[str, str]]:
    return {
        (b.source_article_id, b.target_article_id)
        for b in list_backlinks(conn, server_id)
    }


# ---------------------------------------------------------------------------
# reprocess
# ---------------------------------------------------------------------------

class TestReprocess:
    def test_round_trip(self, conn, maintainer, queries) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        b = create_article(conn, "srv", "Beta", "")

        maintainer.reprocess("srv", a.id, "[[beta]]")

        assert [x.id for x in queries.get_outgoing("srv", "alpha")] == [b.id]
        assert [x.id for x in queries.get_incoming("srv", "beta")] == [a.id]

    def test_dangling_reference_creates_no_edge(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        maintainer.reprocess("srv", a.id, "[[nonexistent-slug]]")
        assert _edges(conn) == set()

    def test_markdown_links_resolve(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        b = create_article(conn, "srv", "Beta", "")
        c = create_article(conn, "srv", "Gamma", "")
        maintainer.reprocess("srv", a.id, "[b](/wiki/beta) and [g](gamma) and [x](https://x.io)")
        assert _edges(conn) == {(a.id, b.id), (a.id, c.id)}

    def test_replaces_previous_edges(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        b = create_article(conn, "srv", "Beta", "")
        c = create_article(conn, "srv", "Gamma", "")

        maintainer.reprocess("srv", a.id, "[[beta]]")
        maintainer.reprocess("srv", a.id, "[[gamma]]")

        assert _edges(conn) == {(a.id, c.id)}

    def test_empty_content_clears_edges(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        b = create_article(conn, "srv", "Beta", "")
        maintainer.reprocess("srv", a.id, "[[beta]]")
        maintainer.reprocess("srv", a.id, "")
        assert _edges(conn) == set()

    def test_is_idempotent(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        create_article(conn, "srv", "Beta", "")
        create_article(conn, "srv", "Gamma", "")
        content = "[[beta]] [[gamma]] [[missing]]"

        maintainer.reprocess("srv", a.id, content)
        once = _edges(conn)
        maintainer.reprocess("srv", a.id, content)
        assert _edges(conn) == once
        assert len(once) == 2

    def test_slugs_resolve_only_within_server(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        create_article(conn, "other", "Beta", "")
        maintainer.reprocess("srv", a.id, "[[beta]]")
        assert _edges(conn) == set()
        assert list_backlinks(conn, "other") == []

    def test_self_link_is_kept(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        maintainer.reprocess("srv", a.id, "See [[alpha]].")
        assert _edges(conn) == {(a.id, a.id)}

    def test_leaves_other_sources_untouched(self, conn, maintainer) -> None:
        a = create_article(conn, "srv", "Alpha", "")
        b = create_article(conn, "srv", "Beta", "")
        maintainer.reprocess("srv", b.id, "[[alpha]]")
        maintainer.reprocess("srv", a.id, "")
        assert _edges(conn) == {(b.id, a.id)}


# ---------------------------------------------------------------------------
# rebuild_server
# ---------------------------------------------------------------------------

class TestRebuildServer:
    def _seed(self, conn: sqlite3.Connection):
        a = create_article(conn, "srv", "Alpha", "[[beta]] [[gamma]] [[ghost]]")
        b = create_article(conn, "srv", "Beta", "[see](/wiki/alpha) and [[beta]]")
        c = create_article(conn, "srv", "Gamma", "No links here at all.")
        return a, b, c

    def test_returns_raw_extracted_count(self, conn, maintainer) -> None:
        self._seed(conn)
        # 3 from alpha (ghost included) + 2 from beta + 0 from gamma
        assert maintainer.rebuild_server("srv") == 5

    def test_matches_individual_reprocessing(self, conn, maintainer) -> None:
        articles = self._seed(conn)
        maintainer.rebuild_server("srv")
        rebuilt = _edges(conn)

        with conn:
            conn.execute("DELETE FROM backlinks")
        for article in reversed(articles):
            maintainer.reprocess("srv", article.id, article.content)

        assert _edges(conn) == rebuilt
        a, b, c = articles
        assert rebuilt == {(a.id, b.id), (a.id, c.id), (b.id, a.id), (b.id, b.id)}

    def test_drops_stale_edges(self, conn, maintainer) -> None:
        a, b, c = self._seed(conn)
        # An edge with no backing link in content.
        insert_backlinks(conn, c.id, [a.id])
        maintainer.rebuild_server("srv")
        assert (c.id, a.id) not in _edges(conn)

    def test_picks_up_content_written_behind_its_back(self, conn, maintainer) -> None:
        a, b, c = self._seed(conn)
        maintainer.rebuild_server("srv")
        update_article(conn, c.id, content="Now linking [[alpha]]")
        maintainer.rebuild_server("srv")
        assert (c.id, a.id) in _edges(conn)

    def test_leaves_other_servers_alone(self, conn, maintainer) -> None:
        self._seed(conn)
        x = create_article(conn, "other", "X", "[[y]]")
        y = create_article(conn, "other", "Y", "")
        maintainer.reprocess("other", x.id, x.content)
        maintainer.rebuild_server("srv")
        assert _edges(conn, "other") == {(x.id, y.id)}

    def test_empty_server(self, maintainer) -> None:
        assert maintainer.rebuild_server("empty") == 0

    def test_rerun_converges(self, conn, maintainer) -> None:
        self._seed(conn)
        maintainer.rebuild_server("srv")
        first = _edges(conn)
        maintainer.rebuild_server("srv")
        assert _edges(conn) == first


# ---------------------------------------------------------------------------
# Failure propagation and serialization (hand-written stores)
# ---------------------------------------------------------------------------

class _MemoryArticles:
    def __init__(self, server_id: str, slugs: dict[str, str], contents=None) -> None:
        self.server_id = server_id
        self.slugs = slugs  # slug -> id
        self.contents = contents or []
        self.fail = False

    def find_by_slugs(self, server_id: str, slugs: Iterable[str]) -> list[tuple[str, str]]:
        if self.fail:
            raise sqlite3.OperationalError("database is locked")
        return [(self.slugs[s], s) for s in slugs if s in self.slugs]

    def list_contents(self, server_id: str) -> list[tuple[str, str]]:
        return list(self.contents)


class _MemoryBacklinks:
    def __init__(self, delay: float = 0.0) -> None:
        self.edges: dict[str, list[str]] = {}
        self.delay = delay
        self.active: set[str] = set()
        self.overlaps = 0
        self._guard = threading.Lock()
        self.fail_on: str | None = None
        self.cleared: list[str] = []

    def replace_outgoing(self, source_id: str, target_ids: Iterable[str]) -> None:
        if source_id == self.fail_on:
            raise sqlite3.IntegrityError("constraint failed")
        with self._guard:
            if source_id in self.active:
                self.overlaps += 1
            self.active.add(source_id)
        time.sleep(self.delay)
        self.edges[source_id] = list(target_ids)
        with self._guard:
            self.active.discard(source_id)

    def delete_for_server(self, server_id: str) -> None:
        self.cleared.append(server_id)
        self.edges.clear()


class TestFailuresAndConcurrency:
    def test_lookup_error_propagates(self) -> None:
        articles = _MemoryArticles("srv", {"beta": "b"})
        articles.fail = True
        maintainer = BacklinkMaintainer(articles, _MemoryBacklinks())
        with pytest.raises(sqlite3.OperationalError):
            maintainer.reprocess("srv", "a", "[[beta]]")

    def test_storage_error_propagates(self) -> None:
        edges = _MemoryBacklinks()
        edges.fail_on = "a"
        maintainer = BacklinkMaintainer(_MemoryArticles("srv", {"beta": "b"}), edges)
        with pytest.raises(sqlite3.IntegrityError):
            maintainer.reprocess("srv", "a", "[[beta]]")

    def test_no_lookup_when_nothing_extracted(self) -> None:
        articles = _MemoryArticles("srv", {})
        articles.fail = True  # would raise if called
        edges = _MemoryBacklinks()
        BacklinkMaintainer(articles, edges).reprocess("srv", "a", "plain text")
        assert edges.edges == {"a": []}

    def test_rebuild_aborts_on_first_failure(self) -> None:
        articles = _MemoryArticles(
            "srv",
            {"a": "a", "b": "b", "c": "c"},
            contents=[("a", "[[b]]"), ("b", "[[c]]"), ("c", "[[a]]")],
        )
        edges = _MemoryBacklinks()
        edges.fail_on = "b"
        with pytest.raises(sqlite3.IntegrityError):
            BacklinkMaintainer(articles, edges).rebuild_server("srv")
        assert edges.cleared == ["srv"]
        assert edges.edges == {"a": ["b"]}

    def test_same_article_is_serialized(self) -> None:
        edges = _MemoryBacklinks(delay=0.02)
        maintainer = BacklinkMaintainer(_MemoryArticles("srv", {"b": "b"}), edges)

        threads = [
            threading.Thread(target=maintainer.reprocess, args=("srv", "a", "[[b]]"))
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert edges.overlaps == 0
        assert edges.edges == {"a": ["b"]}

    def test_lock_map_does_not_grow(self) -> None:
        maintainer = BacklinkMaintainer(_MemoryArticles("srv", {"b": "b"}), _MemoryBacklinks())
        for article_id in ("a", "b", "c"):
            maintainer.reprocess("srv", article_id, "[[b]]")
        assert len(maintainer._locks) == 0


# ---------------------------------------------------------------------------
# Threads sharing one connection
# ---------------------------------------------------------------------------

class TestSharedConnection:
    def test_failed_replace_is_invisible_to_other_threads(
        self, conn, maintainer, monkeypatch
    ) -> None:
        import wikigraph.db.backlinks as backlinks_module

        target = create_article(conn, "srv", "Target", "")
        x = create_article(conn, "srv", "X", "")
        y = create_article(conn, "srv", "Y", "")
        maintainer.reprocess("srv", x.id, "[[target]]")

        paused = threading.Event()
        release = threading.Event()
        original_insert = backlinks_module._insert

        def stalling_insert(c, source_id, target_ids):
            if source_id != x.id:
                return original_insert(c, source_id, target_ids)
            paused.set()
            release.wait(timeout=5)
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(backlinks_module, "_insert", stalling_insert)

        errors: list[Exception] = []
        seen: list[list[str]] = []

        def failing_writer() -> None:
            try:
                maintainer.reprocess("srv", x.id, "[[target]]")
            except sqlite3.OperationalError as exc:
                errors.append(exc)

        def other_thread() -> None:
            seen.append([a.id for a in SqliteBacklinkStore(conn).outgoing(x.id)])
            maintainer.reprocess("srv", y.id, "[[target]]")

        writer = threading.Thread(target=failing_writer)
        writer.start()
        assert paused.wait(timeout=5)

        other = threading.Thread(target=other_thread)
        other.start()
        other.join(timeout=0.2)
        assert other.is_alive()  # blocked behind the open transaction

        release.set()
        writer.join(timeout=5)
        other.join(timeout=5)

        assert len(errors) == 1
        assert seen == [[target.id]]
        assert _edges(conn) == {(x.id, target.id), (y.id, target.id)}
