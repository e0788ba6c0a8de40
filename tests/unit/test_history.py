"""Unit tests for the build-history analyzer."""

from container_diff.analyzers.history import HistoryAnalyzer, diverge
from container_diff.models.image import LayerCommand
from container_diff.models.results import HistoryDiffResult


def commands(*texts):
    return [LayerCommand(command=text) for text in texts]


class TestDiverge:
    """Tests for prefix divergence."""

    def test_common_prefix_omitted(self):
        """Test only the commands after the first difference are reported."""
        removed, added = diverge(commands("FROM a", "RUN b", "RUN c"), commands("FROM a", "RUN b", "RUN d", "RUN e"))

        assert [c.command for c in removed] == ["RUN c"]
        assert [c.command for c in added] == ["RUN d", "RUN e"]

    def test_identical(self):
        """Test identical histories have no differences."""
        assert diverge(commands("A", "B"), commands("A", "B")) == ([], [])

    def test_differs_at_start(self):
        """Test a shared command after the first difference is not reported."""
        removed, added = diverge(commands("A", "B"), commands("X", "B"))

        assert [c.command for c in removed] == ["A"]
        assert [c.command for c in added] == ["X"]

    def test_shared_suffix_omitted(self):
        """Test commands common to both remainders stay out of the partitions."""
        removed, added = diverge(
            commands("FROM a", "RUN b", "CMD x"),
            commands("FROM a", "RUN c", "CMD x"),
        )

        assert [c.command for c in removed] == ["RUN b"]
        assert [c.command for c in added] == ["RUN c"]

    def test_repeated_commands_matched_once(self):
        """Test a command repeated on one side is only paired once."""
        removed, added = diverge(
            commands("FROM a", "RUN x", "RUN y", "RUN x"),
            commands("FROM a", "RUN z", "RUN x"),
        )

        assert [c.command for c in removed] == ["RUN y", "RUN x"]
        assert [c.command for c in added] == ["RUN z"]

    def test_order_preserved(self):
        """Test unique commands keep their original order."""
        removed, added = diverge(commands("A", "C", "B", "D"), commands("A", "E", "B", "F"))

        assert [c.command for c in removed] == ["C", "D"]
        assert [c.command for c in added] == ["E", "F"]

    def test_extension(self):
        """Test an image built on top of another only adds commands."""
        removed, added = diverge(commands("A"), commands("A", "B", "C"))

        assert removed == []
        assert [c.command for c in added] == ["B", "C"]

    def test_sizes_do_not_affect_divergence(self):
        """Test divergence is decided by command text alone."""
        first = [LayerCommand(command="A", size=1)]
        second = [LayerCommand(command="A", size=2)]

        assert diverge(first, second) == ([], [])


class TestHistoryAnalyzer:
    """Tests for HistoryAnalyzer."""

    def test_analyze(self, snapshot_factory):
        """Test analyze returns the snapshot history in order."""
        snapshot = snapshot_factory("img", history=commands("FROM scratch", "ADD . /"))

        result = HistoryAnalyzer().analyze(snapshot)

        assert result.analyzer == "history"
        assert [c.command for c in result.analysis] == ["FROM scratch", "ADD . /"]

    def test_diff(self, snapshot_factory):
        """Test diff never reports changed commands."""
        snapshot1 = snapshot_factory("img1", history=commands("A", "B"))
        snapshot2 = snapshot_factory("img2", history=commands("A", "C"))

        result = HistoryAnalyzer().diff(snapshot1, snapshot2)

        assert isinstance(result, HistoryDiffResult)
        assert [c.command for c in result.removed] == ["B"]
        assert [c.command for c in result.added] == ["C"]
        assert result.changed == []

    def test_diff_partitions_disjoint(self, snapshot_factory):
        """Test a shared suffix never lands in both added and removed."""
        snapshot1 = snapshot_factory("img1", history=commands("FROM a", "RUN b", "CMD x"))
        snapshot2 = snapshot_factory("img2", history=commands("FROM a", "RUN c", "CMD x"))

        partitions = HistoryAnalyzer().diff(snapshot1, snapshot2).partition_keys()

        assert partitions["added"] == {"RUN c"}
        assert partitions["removed"] == {"RUN b"}
        assert not partitions["added"] & partitions["removed"]
