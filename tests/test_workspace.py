"""
Tests for open-document memoization and multi-file analysis.
"""

import threading

import pytest

from exoraven import workspace
from exoraven.config import AnalyzerConfig
from exoraven.workspace import DocumentStore, analyze_paths, expand_paths


URI = "file:///story.exo"


class TestDocumentStore:

    def test_open_and_get(self):
        store = DocumentStore()
        store.open(URI, "=== t\n* c\n  > nowhere")
        result = store.get(URI)
        assert result.filename == URI
        assert [d.code for d in result.diagnostics] == ["unknown-jump-target"]
        assert URI in store
        assert store.uris == [URI]

    def test_result_memoized(self, monkeypatch):
        store = DocumentStore()
        store.open(URI, "=== t")
        calls = []
        real = workspace.analyze_text

        def counting(*args, **kwargs):
            calls.append(args)
            return real(*args, **kwargs)

        monkeypatch.setattr(workspace, "analyze_text", counting)
        first = store.get(URI)
        assert store.get(URI) is first
        assert len(calls) == 1

    def test_update_drops_memo(self):
        store = DocumentStore()
        store.open(URI, "=== t")
        before = store.get(URI)
        store.update(URI, "=== t\n[endif]")
        after = store.get(URI)
        assert after is not before
        assert [d.code for d in after.diagnostics] == ["unmatched-endif"]
        assert store.text(URI) == "=== t\n[endif]"

    def test_update_unknown_opens(self):
        store = DocumentStore()
        store.update(URI, "=== t")
        assert URI in store

    def test_close(self):
        store = DocumentStore()
        store.open(URI, "=== t")
        store.close(URI)
        assert URI not in store
        with pytest.raises(KeyError):
            store.get(URI)

    def test_stale_result_not_cached(self, monkeypatch):
        store = DocumentStore()
        store.open(URI, "=== old")
        real = workspace.analyze_text

        def edit_during_analysis(text, config, filename):
            result = real(text, config, filename)
            if text == "=== old":
                store.update(URI, "=== new")
            return result

        monkeypatch.setattr(workspace, "analyze_text", edit_during_analysis)
        stale = store.get(URI)
        assert stale.document.stories[0].id == "old"
        assert store.get(URI).document.stories[0].id == "new"

    def test_config_applied(self):
        store = DocumentStore(AnalyzerConfig.from_dict({"disabled_rules": ["unmatched-quote"]}))
        store.open(URI, '=== t\n"open')
        assert store.get(URI).diagnostics == []

    def test_concurrent_gets(self):
        store = DocumentStore()
        for i in range(8):
            store.open(f"file:///{i}.exo", f"=== s{i}\n* c\n  > start")
        results = {}

        def worker(uri):
            results[uri] = store.get(uri)

        threads = [threading.Thread(target=worker, args=(uri,)) for uri in store.uris]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(r.diagnostics == [] for r in results.values())


class TestPaths:

    def make_tree(self, root):
        (root / "b").mkdir()
        (root / "a.exo").write_text("=== a\n")
        (root / "b" / "c.exo").write_text("=== c\n[endif]\n")
        (root / "b" / "notes.md").write_text("# ignored\n")
        (root / "d.txt").write_text("=== d\n")

    def test_expand_directory(self, tmp_path):
        self.make_tree(tmp_path)
        found = expand_paths([tmp_path], ["*.exo", "*.txt"])
        assert found == sorted([tmp_path / "a.exo", tmp_path / "b" / "c.exo", tmp_path / "d.txt"])

    def test_expand_deduplicates(self, tmp_path):
        self.make_tree(tmp_path)
        found = expand_paths([tmp_path / "a.exo", tmp_path], ["*.exo"])
        assert found[0] == tmp_path / "a.exo"
        assert found.count(tmp_path / "a.exo") == 1
        assert len(found) == 2

    def test_analyze_paths_in_order(self, tmp_path):
        self.make_tree(tmp_path)
        reports = analyze_paths([tmp_path], workers=3)
        assert [r.path.name for r in reports] == ["a.exo", "c.exo", "d.txt"]
        assert all(r.ok for r in reports)
        assert [d.code for d in reports[1].result.diagnostics] == ["unmatched-endif"]

    def test_unreadable_file_reported(self, tmp_path):
        (tmp_path / "a.exo").write_text("=== a\n")
        reports = analyze_paths([tmp_path / "missing.exo", tmp_path / "a.exo"])
        missing, ok = reports
        assert not missing.ok
        assert "Cannot read" in missing.error
        assert ok.ok

    def test_patterns_from_config(self, tmp_path):
        self.make_tree(tmp_path)
        config = AnalyzerConfig.from_dict({"file_patterns": ["*.txt"]})
        reports = analyze_paths([tmp_path], config)
        assert [r.path.name for r in reports] == ["d.txt"]
