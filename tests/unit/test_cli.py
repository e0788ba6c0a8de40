"""Unit tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from container_diff import __version__
from container_diff.cli.analyze import analyze_cmd
from container_diff.cli.diff import diff_cmd
from container_diff.cli.main import app
from container_diff.models.image import ReferenceKind
from container_diff.utils.errors import classify_reference

runner = CliRunner()


@pytest.fixture
def old_image(archive_factory, layer_factory):
    return archive_factory(
        "old.tar",
        [
            layer_factory({"etc/": None, "etc/a.conf": "first\n", "etc/gone.conf": "bye\n"}),
        ],
        history=[{"created_by": "/bin/sh -c #(nop) ADD file:base in /"}],
    )


@pytest.fixture
def new_image(archive_factory, layer_factory):
    return archive_factory(
        "new.tar",
        [
            layer_factory({"etc/": None, "etc/a.conf": "first\n", "etc/gone.conf": "bye\n"}),
            layer_factory({"etc/a.conf": "second version\n", "etc/.wh.gone.conf": ""}),
        ],
        history=[
            {"created_by": "/bin/sh -c #(nop) ADD file:base in /"},
            {"created_by": "/bin/sh -c echo second > /etc/a.conf"},
        ],
    )


@pytest.fixture
def apt_image(archive_factory, layer_factory):
    status = "Package: bash\nStatus: install ok installed\nInstalled-Size: 1500\nVersion: 5.1-2\n"
    return archive_factory("apt.tar", [layer_factory({"var/lib/dpkg/status": status})])


def example_images(command):
    """Image arguments of the example in a command's help text."""
    example = next(
        line.strip() for line in command.__doc__.splitlines() if line.strip().startswith("container-diff ")
    )
    return [arg for arg in example.split()[2:] if not arg.startswith("-")]


class TestMainApp:
    """Tests for the top-level application."""

    def test_help(self):
        """Test --help lists the subcommands."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "analyze" in result.stdout
        assert "diff" in result.stdout

    def test_version(self):
        """Test the version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_json_history(self, old_image):
        """Test analyzing an archive's history as JSON."""
        result = runner.invoke(app, ["-q", "analyze", str(old_image), "--history", "--json"])

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert len(output) == 1
        assert output[0]["analyzer"] == "history"
        assert output[0]["image"] == str(old_image)
        assert output[0]["analysis"][0]["command"] == "/bin/sh -c #(nop) ADD file:base in /"

    def test_all_analyzers_by_default(self, old_image):
        """Test no analyzer flags selects every analyzer, alphabetically."""
        result = runner.invoke(app, ["-q", "analyze", str(old_image), "--json"])

        assert result.exit_code == 0
        names = [entry["analyzer"] for entry in json.loads(result.stdout)]
        assert names == ["apt", "file", "history", "node", "pip"]

    def test_text_output(self, old_image):
        """Test the default text output."""
        result = runner.invoke(app, ["-q", "analyze", str(old_image), "--history"])

        assert result.exit_code == 0
        assert "-----history-----" in result.stdout

    def test_invalid_reference(self):
        """Test an unclassifiable reference exits with status 1."""
        result = runner.invoke(app, ["-q", "analyze", "nginx"])

        assert result.exit_code == 1

    def test_missing_argument(self):
        """Test a missing image argument is a usage error."""
        result = runner.invoke(app, ["analyze"])

        assert result.exit_code == 2

    def test_bad_config(self, old_image, tmp_path):
        """Test an invalid configuration file exits with status 1."""
        config = tmp_path / "config.yaml"
        config.write_text("engine:\n  max_workers: 0\n")

        result = runner.invoke(app, ["-q", "analyze", str(old_image), "--config", str(config)])

        assert result.exit_code == 1


class TestDiffCommand:
    """Tests for the diff command."""

    def test_file_diff_json(self, old_image, new_image):
        """Test changed and removed files between two archives."""
        result = runner.invoke(app, ["-q", "diff", str(old_image), str(new_image), "--file", "--json"])

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert len(output) == 1
        file_diff = output[0]
        assert [c["path"] for c in file_diff["changed"]] == ["/etc/a.conf"]
        assert [e["path"] for e in file_diff["removed"]] == ["/etc/gone.conf"]
        assert file_diff["added"] == []

    def test_history_diff_text(self, old_image, new_image):
        """Test the history diff in text form."""
        result = runner.invoke(app, ["-q", "diff", str(old_image), str(new_image), "-d"])

        assert result.exit_code == 0
        assert "-----history-----" in result.stdout
        assert "echo second" in result.stdout

    def test_identical_images(self, old_image):
        """Test diffing an image against itself."""
        result = runner.invoke(app, ["-q", "diff", str(old_image), str(old_image), "--apt"])

        assert result.exit_code == 0
        assert "No apt differences" in result.stdout

    def test_missing_second_image(self, old_image):
        """Test diff requires two images."""
        result = runner.invoke(app, ["diff", str(old_image)])

        assert result.exit_code == 2



class TestHelpExamples:
    """The examples shown in command help must be accepted as given."""

    def test_analyze_example(self):
        """Test the analyze example names one valid registry image."""
        images = example_images(analyze_cmd)

        assert len(images) == 1
        assert classify_reference(images[0]).kind == ReferenceKind.REMOTE_URL

    def test_diff_example(self):
        """Test the diff example names two valid registry images."""
        images = example_images(diff_cmd)

        assert len(images) == 2
        for image in images:
            assert classify_reference(image).kind == ReferenceKind.REMOTE_URL

    def test_diff_help_shows_example(self):
        """Test the example appears in diff --help."""
        result = runner.invoke(app, ["diff", "--help"])

        assert result.exit_code == 0
        assert "gcr.io/google-appengine/debian11:latest" in result.stdout


class TestVerboseOutput:
    """Tests for the global --verbose flag."""

    def test_locations_hidden_by_default(self, apt_image):
        """Test package tables leave out locations without -v."""
        result = runner.invoke(app, ["-q", "analyze", str(apt_image), "--apt"])

        assert result.exit_code == 0
        assert "bash" in result.stdout
        assert "Location" not in result.stdout

    def test_locations_shown_with_verbose(self, apt_image):
        """Test -v adds the location column to package tables."""
        result = runner.invoke(app, ["-v", "analyze", str(apt_image), "--apt"])

        assert result.exit_code == 0
        assert "Location" in result.stdout
        assert "/var/lib/dpkg/status" in result.stdout
