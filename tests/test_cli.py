"""Tests for the click CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from PIL import Image

from shotdiff.cli import cli
from shotdiff.models.config import ShotdiffConfig


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def images(tmp_path: Path, make_gradient, with_pixels) -> dict[str, Path]:
    """Baseline, identical copy and a changed candidate as PNG files."""
    baseline = make_gradient(30, 30)
    paths = {
        "baseline": tmp_path / "baseline.png",
        "same": tmp_path / "same.png",
        "changed": tmp_path / "changed.png",
    }
    baseline.save(paths["baseline"])
    baseline.save(paths["same"])
    with_pixels(baseline, [(x, 3) for x in range(30)], (254, 254, 254, 255)).save(paths["changed"])
    return paths


class TestCompareCommand:
    def test_equal_exits_zero(self, runner, images, tmp_path):
        result = runner.invoke(cli, [
            "compare", str(images["baseline"]), str(images["same"]),
            "--heatmap", str(tmp_path / "hm.jpg"),
        ])
        assert result.exit_code == 0
        assert "equal" in result.output
        assert not (tmp_path / "hm.jpg").exists()

    def test_mismatch_exits_one_and_writes_heatmap(self, runner, images, tmp_path):
        heatmap = tmp_path / "out" / "hm.jpg"
        result = runner.invoke(cli, [
            "compare", str(images["baseline"]), str(images["changed"]),
            "--heatmap", str(heatmap),
        ])
        assert result.exit_code == 1
        assert "different" in result.output
        assert heatmap.exists()

    def test_no_heatmap_flag(self, runner, images, tmp_path):
        heatmap = tmp_path / "hm.jpg"
        result = runner.invoke(cli, [
            "compare", str(images["baseline"]), str(images["changed"]),
            "--heatmap", str(heatmap), "--no-heatmap",
        ])
        assert result.exit_code == 1
        assert not heatmap.exists()

    def test_accuracy_override(self, runner, images, tmp_path):
        """900 content pixels with accuracy 0 allow 9 differences; 30 still fail."""
        result = runner.invoke(cli, [
            "compare", str(images["baseline"]), str(images["changed"]),
            "--accuracy", "0", "--no-heatmap",
        ])
        assert result.exit_code == 1
        assert "9" in result.output

    def test_writes_json_report(self, runner, images, tmp_path):
        report = tmp_path / "report.json"
        runner.invoke(cli, [
            "compare", str(images["baseline"]), str(images["changed"]),
            "--no-heatmap", "--report", str(report),
        ])
        data = json.loads(report.read_text())
        assert data["differing_pixels"] == 30
        assert data["baseline_path"] == str(images["baseline"])

    def test_missing_file_exits_two(self, runner, tmp_path):
        result = runner.invoke(cli, ["compare", str(tmp_path / "a.png"), str(tmp_path / "b.png")])
        assert result.exit_code == 2
        assert "not found" in result.output

    def test_uses_config_file(self, runner, images, tmp_path):
        config_path = tmp_path / "shotdiff.json"
        cfg = ShotdiffConfig()
        cfg.comparison.heatmap_path = str(tmp_path / "from-config.jpg")
        cfg.save(config_path)

        result = runner.invoke(cli, [
            "compare", str(images["baseline"]), str(images["changed"]),
            "--config", str(config_path),
        ])
        assert result.exit_code == 1
        assert (tmp_path / "from-config.jpg").exists()


class TestNormalizeCommand:
    def test_normalizes_file(self, runner, tmp_path, make_gradient):
        raw = tmp_path / "raw.png"
        make_gradient(200, 300).save(raw)
        out = tmp_path / "norm" / "out.png"

        result = runner.invoke(cli, [
            "normalize", str(raw), str(out), "--dpr", "2", "--inner-height", "100", "--offset", "10",
        ])

        assert result.exit_code == 0
        with Image.open(out) as img:
            assert img.size == (100, 100)

    def test_negative_ratio_fails(self, runner, tmp_path, make_image):
        raw = tmp_path / "raw.png"
        make_image(10, 10).save(raw)
        result = runner.invoke(cli, [
            "normalize", str(raw), str(tmp_path / "o.png"), "--dpr=-1", "--inner-height", "10",
        ])
        assert result.exit_code == 2


class TestBaselineWorkflow:
    def _config(self, tmp_path: Path) -> Path:
        path = tmp_path / "shotdiff.json"
        ShotdiffConfig(
            baselines_dir=str(tmp_path / "baselines"),
            report_output_dir=str(tmp_path / "reports"),
        ).save(path)
        return path

    def test_check_stores_first_run(self, runner, images, tmp_path):
        config = self._config(tmp_path)
        result = runner.invoke(cli, ["check", "home", str(images["baseline"]), "-c", str(config)])
        assert result.exit_code == 0
        assert "first run" in result.output
        assert (tmp_path / "baselines" / "images" / "home" / "desktop.png").exists()

    def test_check_against_stored_baseline(self, runner, images, tmp_path):
        config = self._config(tmp_path)
        runner.invoke(cli, ["baseline", "add", "home", str(images["baseline"]), "-c", str(config)])

        same = runner.invoke(cli, ["check", "home", str(images["same"]), "-c", str(config)])
        changed = runner.invoke(cli, ["check", "home", str(images["changed"]), "-c", str(config)])

        assert same.exit_code == 0
        assert changed.exit_code == 1
        assert (tmp_path / "reports" / "home__desktop_heatmap.jpg").exists()

    def test_check_rejects_replaced_baseline(self, runner, images, tmp_path, make_image):
        """A baseline file swapped behind the registry's back is an error, not a comparison."""
        config = self._config(tmp_path)
        runner.invoke(cli, ["baseline", "add", "home", str(images["baseline"]), "-c", str(config)])
        make_image(30, 30).save(tmp_path / "baselines" / "images" / "home" / "desktop.png")

        result = runner.invoke(cli, ["check", "home", str(images["same"]), "-c", str(config)])

        assert result.exit_code == 2
        assert "hash" in result.output

    def test_baseline_list(self, runner, images, tmp_path):
        config = self._config(tmp_path)
        empty = runner.invoke(cli, ["baseline", "list", "-c", str(config)])
        assert "No baselines" in empty.output

        runner.invoke(cli, [
            "baseline", "add", "cart", str(images["baseline"]), "--viewport", "mobile", "-c", str(config),
        ])
        listed = runner.invoke(cli, ["baseline", "list", "-c", str(config)])
        assert "cart" in listed.output
        assert "30x30" in listed.output


class TestInitCommand:
    def test_creates_config(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert ShotdiffConfig.load(tmp_path / "shotdiff.json").comparison.accuracy == 1000

    def test_declining_overwrite_keeps_file(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "shotdiff.json").write_text("{}")
        result = runner.invoke(cli, ["init"], input="n\n")
        assert result.exit_code == 0
        assert (tmp_path / "shotdiff.json").read_text() == "{}"
