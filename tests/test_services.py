"""Tests for design, file and export services."""
import logging

import pandas as pd
import pytest
from pydantic import ValidationError

from fielddesign import main
from fielddesign.config import Settings, settings
from fielddesign.errors import DuplicateTreatmentId, IOFailure, InvalidDesign, ShapeMismatch
from fielddesign.models import DesignKind, DesignParameters, LayoutOrder
from fielddesign.services import DesignService, ExportService, FileService


@pytest.fixture
def design_service():
    return DesignService()


@pytest.fixture
def small_maps(monkeypatch):
    """Keep rendered maps small."""
    monkeypatch.setattr(settings, "map_width", 4.0)
    monkeypatch.setattr(settings, "map_height", 2.0)
    monkeypatch.setattr(settings, "map_dpi", 40)


@pytest.fixture
def crd_result(design_service, nk_treatments):
    params = DesignParameters(kind=DesignKind.CRD, replicates=4, seed=123, rows=4, cols=9)
    return design_service.generate_design(nk_treatments, params)


@pytest.fixture
def rcbd_result(design_service, nk_treatments):
    params = DesignParameters(kind=DesignKind.RCBD, replicates=4, seed=123, rows=4, cols=9)
    return design_service.generate_design(nk_treatments, params)


class TestDesignService:
    """Test cases for DesignService, including the N x K example."""

    def test_crd_example(self, crd_result, nk_treatments):
        """Test CRD: plot ids 1..36, each treatment four times."""
        assert crd_result.kind == DesignKind.CRD
        assert sorted(a.plot_id for a in crd_result.assignments) == list(range(1, 37))
        assert not crd_result.has_errors
        assert crd_result.layout.rows == 4 and crd_result.layout.cols == 9
        assert "36 plots" in crd_result.message

    def test_rcbd_example(self, rcbd_result, nk_treatments):
        """Test RCBD: ids block*100+position and complete blocks."""
        expected = {b * 100 + p for b in range(1, 5) for p in range(1, 10)}
        assert {a.plot_id for a in rcbd_result.assignments} == expected
        for block in range(1, 5):
            ids = sorted(a.treatment.id for a in rcbd_result.get_block(block))
            assert ids == sorted(nk_treatments.ids())
        assert rcbd_result.violations == []

    def test_frequency_per_treatment(self, design_service, crd_result, rcbd_result):
        """Test the exported table counts four plots per treatment."""
        for result in (crd_result, rcbd_result):
            df = design_service.to_dataframe(result)
            counts = df["treatment_id"].value_counts()
            assert len(counts) == 9
            assert (counts == 4).all()

    def test_shape_mismatch(self, design_service, nk_treatments):
        params = DesignParameters(kind=DesignKind.CRD, replicates=4, seed=1, rows=5, cols=9)
        with pytest.raises(ShapeMismatch):
            design_service.generate_design(nk_treatments, params)

    def test_default_shape_and_column_order(self, design_service, nk_treatments):
        params = DesignParameters(
            kind=DesignKind.RCBD, replicates=4, seed=1, rows=9, cols=4,
            order=LayoutOrder.COLUMN_MAJOR
        )
        result = design_service.generate_design(nk_treatments, params)
        assert all(c.assignment.block == c.col for c in result.layout.cells)

        result = design_service.generate_design(
            nk_treatments, DesignParameters(kind=DesignKind.CRD, replicates=2, seed=1)
        )
        assert (result.layout.rows, result.layout.cols) == (2, 9)

    def test_dataframe_columns(self, design_service, crd_result, rcbd_result):
        crd = design_service.to_dataframe(crd_result)
        assert list(crd.columns) == [
            "plot_id", "block", "replicate", "treatment_code", "treatment_id",
            "treatment_name", "nitrogen", "potassium", "row", "col",
        ]
        assert len(crd) == 36
        assert crd["block"].isna().all()

        rcbd = design_service.to_dataframe(rcbd_result)
        assert rcbd["block"].tolist() == [b for b in range(1, 5) for _ in range(9)]

    def test_dataframe_without_layout(self, design_service, crd_result):
        bare = crd_result.model_copy(update={"layout": None})
        df = design_service.to_dataframe(bare)
        assert len(df) == 36
        assert df["row"].isna().all()

    def test_plot_id_base_must_be_positive(self, nk_treatments):
        """Test a zero plot id base fails fast in settings and in the service."""
        with pytest.raises(ValidationError):
            Settings(plot_id_base=0)

        params = DesignParameters(kind=DesignKind.RCBD, replicates=4, seed=1)
        with pytest.raises(InvalidDesign):
            DesignService(plot_id_base=0).generate_design(nk_treatments, params)

    def test_custom_plot_id_base(self, nk_treatments):
        params = DesignParameters(kind=DesignKind.RCBD, replicates=2, seed=1)
        result = DesignService(plot_id_base=10).generate_design(nk_treatments, params)
        assert [a.plot_id for a in result.get_block(2)] == list(range(21, 30))

    def test_violations_logged_with_explanation(self, design_service, nk_treatments, rcbd_result, caplog):
        """Test hard violations are logged as errors with their explanation."""
        assignments = list(rcbd_result.assignments)
        other = next(t for t in nk_treatments if t.id != assignments[0].treatment.id)
        assignments[0] = assignments[0].model_copy(update={"treatment": other})
        broken = rcbd_result.model_copy(update={"assignments": assignments})

        with caplog.at_level(logging.DEBUG, logger="fielddesign.services.design_service"):
            violations = design_service.validate_design(broken)

        assert {v.constraint_name for v in violations} >= {"complete_block", "replication"}
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert any("every treatment exactly once" in r.getMessage() for r in errors)

    def test_deterministic(self, design_service, nk_treatments):
        params = DesignParameters(kind=DesignKind.RCBD, replicates=4, seed=77, rows=4, cols=9)
        first = design_service.to_dataframe(design_service.generate_design(nk_treatments, params))
        second = design_service.to_dataframe(design_service.generate_design(nk_treatments, params))
        pd.testing.assert_frame_equal(first, second)


class TestFileService:
    """Test cases for FileService."""

    CSV = (
        "id,name,nitrogen,potassium\n"
        "N0_K0,Control,0,0\n"
        "N100_K30,N100 K30,100,30\n"
        "N200_K60,N200 K60,200,60\n"
    )

    def test_parse_csv(self):
        treatments = FileService().parse_file(self.CSV.encode(), "treatments.csv")
        assert treatments.ids() == ["N0_K0", "N100_K30", "N200_K60"]
        assert treatments[0].name == "Control"
        assert [t.numeric_code for t in treatments] == [1, 2, 3]
        assert treatments[1].factors == {"nitrogen": 100, "potassium": 30}
        assert type(treatments[1].factors["nitrogen"]) is int

    def test_column_aliases_and_codes(self):
        content = "Treatment,Code,dose\nlow,10,0.5\nhigh,20,2.5\n"
        treatments = FileService().parse_file(content.encode(), "t.csv")
        assert treatments.ids() == ["low", "high"]
        assert treatments[0].name == "low"
        assert [t.numeric_code for t in treatments] == [10, 20]
        assert treatments[1].factors == {"dose": 2.5}

    def test_parse_path(self, tmp_path):
        path = tmp_path / "treatments.csv"
        path.write_text(self.CSV)
        assert len(FileService().parse_path(path)) == 3

    def test_missing_id_column(self):
        with pytest.raises(ValueError, match="treatment id"):
            FileService().parse_file(b"nitrogen,potassium\n0,0\n", "t.csv")

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported"):
            FileService().parse_file(b"{}", "t.json")

    @pytest.mark.parametrize("column", ["block", "plot_id", "replicate", "row"])
    def test_factor_column_cannot_shadow_plan_column(self, column):
        """Test a factor column named like a plan column is rejected."""
        content = f"id,{column},nitrogen\nA,x,0\nB,y,100\n"
        with pytest.raises(ValueError, match="clash"):
            FileService().parse_file(content.encode(), "t.csv")

    def test_duplicate_ids(self):
        content = "id,nitrogen\nA,0\nA,100\n"
        with pytest.raises(DuplicateTreatmentId):
            FileService().parse_file(content.encode(), "t.csv")


class TestExportService:
    """Test cases for ExportService."""

    def test_export_table(self, tmp_path, crd_result):
        path = ExportService().export_table(crd_result, tmp_path / "out" / "crd.csv")
        df = pd.read_csv(path)
        assert list(df.columns)[:6] == [
            "plot_id", "block", "replicate", "treatment_code", "treatment_id", "treatment_name"
        ]
        assert len(df) == 36
        assert df["block"].isna().all()

    def test_export_overwrites(self, tmp_path, crd_result, rcbd_result):
        path = tmp_path / "plan.csv"
        service = ExportService()
        service.export_table(crd_result, path)
        service.export_table(rcbd_result, path)
        assert pd.read_csv(path)["plot_id"].min() == 101

    def test_export_table_failure(self, tmp_path, crd_result):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        with pytest.raises(IOFailure) as excinfo:
            ExportService().export_table(crd_result, blocker / "plan.csv")
        assert isinstance(excinfo.value, OSError)
        assert "plan.csv" in excinfo.value.path

    def test_render_map(self, tmp_path, rcbd_result, small_maps):
        path = ExportService().render_map(rcbd_result.layout, tmp_path / "map.png", title="RCBD")
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_build_figure(self, crd_result, small_maps):
        fig = ExportService().build_figure(crd_result.layout, width=3, height=2, dpi=30)
        ax = fig.axes[0]
        assert len(ax.patches) == 36
        assert len(ax.texts) == 36
        assert len(ax.get_legend().get_texts()) == 9

    def test_render_map_other_format(self, tmp_path, rcbd_result, small_maps):
        path = ExportService().render_map(rcbd_result.layout, tmp_path / "map.svg")
        assert b"<svg" in path.read_bytes()

    def test_render_map_unsupported_format(self, tmp_path, rcbd_result, small_maps):
        """Test an unknown image extension surfaces as IOFailure."""
        with pytest.raises(IOFailure, match="unsupported image format"):
            ExportService().render_map(rcbd_result.layout, tmp_path / "map.xyz")
        assert not (tmp_path / "map.xyz").exists()

    def test_render_map_failure(self, tmp_path, crd_result, small_maps):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(IOFailure):
            ExportService().render_map(crd_result.layout, blocker / "map.png")


class TestMain:
    """Test the script entry point."""

    def test_run_writes_outputs(self, tmp_path, monkeypatch, small_maps):
        monkeypatch.setattr(settings, "output_dir", tmp_path)
        assert main.run() == 0
        for name in (
            settings.crd_table_filename, settings.rcbd_table_filename,
            settings.crd_map_filename, settings.rcbd_map_filename,
        ):
            assert (tmp_path / name).exists()

        rcbd = pd.read_csv(tmp_path / settings.rcbd_table_filename)
        assert rcbd["treatment_id"].value_counts().eq(4).all()

    def test_run_reports_bad_grid(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "output_dir", tmp_path)
        monkeypatch.setattr(settings, "grid_rows", 5)
        assert main.run() == 1
