"""Plan table and field map export service."""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib
from matplotlib.colors import to_hex
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

from fielddesign.config import settings
from fielddesign.errors import IOFailure
from fielddesign.models import DesignResult, FieldLayout
from fielddesign.services.design_service import DesignService

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def color_map_for_treatments(treatment_ids: List[str], colormap: str) -> Dict[str, str]:
    """Assign each treatment a colour from a matplotlib colormap."""
    cmap = matplotlib.colormaps[colormap]
    return {t: to_hex(cmap(i % cmap.N)) for i, t in enumerate(treatment_ids)}


class ExportService:
    """Service for writing plan tables and field maps."""

    def __init__(self, design_service: Optional[DesignService] = None):
        self.design_service = design_service or DesignService()

    def export_table(self, result: DesignResult, path: PathLike) -> Path:
        """
        Write the plan as CSV, one row per plot, overwriting the target.

        Args:
            result: Randomized design
            path: Target file

        Returns:
            Path written

        Raises:
            IOFailure: target cannot be written
        """
        path = Path(path)
        df = self.design_service.to_dataframe(result)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(path, index=False)
        except OSError as e:
            raise IOFailure(path, e.strerror or str(e)) from e

        logger.info(f"Wrote {len(df)} plots to {path}")
        return path

    def build_figure(
        self,
        layout: FieldLayout,
        title: Optional[str] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        dpi: Optional[int] = None
    ) -> Figure:
        """
        Draw the field grid, one labelled cell per plot, coloured by treatment.

        Row 1 is drawn at the top. The figure is not attached to pyplot.
        """
        width = width or settings.map_width
        height = height or settings.map_height
        dpi = dpi or settings.map_dpi

        treatment_ids: List[str] = []
        names: Dict[str, str] = {}
        for cell in sorted(layout.cells, key=lambda c: c.treatment.numeric_code):
            if cell.treatment.id not in names:
                treatment_ids.append(cell.treatment.id)
                names[cell.treatment.id] = cell.treatment.name
        colors = color_map_for_treatments(treatment_ids, settings.colormap)

        fig = Figure(figsize=(width, height), dpi=dpi, layout="tight")
        ax = fig.add_subplot(1, 1, 1)
        ax.set_xlim(0, layout.cols)
        ax.set_ylim(0, layout.rows)
        ax.invert_yaxis()
        ax.set_xticks([c + 0.5 for c in range(layout.cols)])
        ax.set_yticks([r + 0.5 for r in range(layout.rows)])
        ax.set_xticklabels([str(c + 1) for c in range(layout.cols)])
        ax.set_yticklabels([str(r + 1) for r in range(layout.rows)])
        ax.set_xlabel("Column")
        ax.set_ylabel("Row")
        ax.tick_params(length=0)
        if title:
            ax.set_title(title)

        for cell in layout.cells:
            x0, y0 = cell.col - 1, cell.row - 1
            ax.add_patch(Rectangle(
                (x0, y0), 1, 1,
                facecolor=colors[cell.treatment.id],
                edgecolor="#333333"
            ))
            ax.text(x0 + 0.5, y0 + 0.5, cell.label, ha="center", va="center", fontsize=7)

        handles = [Rectangle((0, 0), 1, 1, facecolor=colors[t]) for t in treatment_ids]
        ax.legend(handles, [names[t] for t in treatment_ids],
                  bbox_to_anchor=(1.02, 1), loc="upper left", borderaxespad=0.)
        return fig

    def render_map(
        self,
        layout: FieldLayout,
        path: PathLike,
        title: Optional[str] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        dpi: Optional[int] = None
    ) -> Path:
        """
        Render a field map image; the format follows the file extension.

        Raises:
            IOFailure: target cannot be written
        """
        path = Path(path)
        fmt = path.suffix.lstrip(".").lower() or "png"
        fig = self.build_figure(layout, title=title, width=width, height=height, dpi=dpi)
        if fmt not in fig.canvas.get_supported_filetypes():
            raise IOFailure(path, f"unsupported image format '{fmt}'")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(path, format=fmt)
        except OSError as e:
            raise IOFailure(path, e.strerror or str(e)) from e

        logger.info(f"Rendered {layout.rows} x {layout.cols} field map to {path}")
        return path
