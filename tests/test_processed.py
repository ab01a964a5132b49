"""
ProcessedSet: insertion-ordered, add-once name tracking.
"""

from strix.extensions.processed import ProcessedSet


class TestProcessedSet:

    def test_empty(self):
        processed = ProcessedSet()
        assert len(processed) == 0
        assert "a" not in processed
        assert processed.names() == []

    def test_add_reports_novelty(self):
        processed = ProcessedSet()
        assert processed.add("a") is True
        assert processed.add("a") is False
        assert len(processed) == 1

    def test_insertion_order(self):
        processed = ProcessedSet()
        for name in ("c", "a", "b", "a"):
            processed.add(name)
        assert list(processed) == ["c", "a", "b"]
        assert processed.names() == ["c", "a", "b"]

    def test_membership(self):
        processed = ProcessedSet()
        processed.add("x")
        assert "x" in processed
        assert "y" not in processed

    def test_repr(self):
        processed = ProcessedSet()
        processed.add("x")
        assert repr(processed) == "ProcessedSet(['x'])"
