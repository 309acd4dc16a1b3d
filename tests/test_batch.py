"""
Tests for thread-pool batch parsing.
"""

from pdxtree.interning import StringPool
from pdxtree.parser.batch import parse_files
from pdxtree.parser.encoding import ScriptFileNotFoundError


class TestBatchParsing:
    """Test parse_files fan-out."""

    def test_parse_many(self, write_script):
        paths = [write_script(f"{i}.txt", f"id = {i}\nowner = TAG{i}") for i in range(20)]
        results = parse_files(paths, workers=4)
        assert set(results) == set(paths)
        for i, path in enumerate(paths):
            assert results[path].success
            assert results[path].root.get_value("id") == i
            assert results[path].metrics.tokens_processed == 7

    def test_errors_and_missing_files(self, write_script, tmp_path):
        good = write_script("good.txt", "a = 1")
        bad = write_script("bad.txt", "a = 1\nbroken\nb = 2")
        missing = tmp_path / "missing.txt"

        results = parse_files([good, bad, missing], workers=2)

        assert results[good].success
        assert not results[bad].success
        assert results[bad].root.get_value("b") == 2
        assert len(results[bad].errors) == 1
        assert isinstance(results[missing].exception, ScriptFileNotFoundError)
        assert results[missing].root.children == {}

    def test_with_includes(self, write_script):
        write_script("common.txt", "shared = yes")
        main = write_script("main.txt", '@include "common.txt"')
        results = parse_files([main], with_includes=True)
        assert results[main].root.get_value("shared") is True

    def test_duplicates_and_strings(self, write_script):
        path = write_script("a.txt", "a = 1")
        results = parse_files([path, str(path)])
        assert list(results) == [path]

    def test_empty(self):
        assert parse_files([]) == {}

    def test_shared_string_pool(self, write_script):
        paths = [write_script(f"{i}.txt", "owner = FRA") for i in range(5)]
        pool = StringPool()
        parse_files(paths, workers=3, string_pool=pool)
        stats = pool.statistics()
        assert stats.unique_strings == 2
        assert stats.total_references == 10
