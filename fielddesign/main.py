"""Script entry point: randomize the N x K fertilizer trial and export it."""
import logging
import sys
from typing import Dict, List

from fielddesign.config import settings
from fielddesign.errors import DesignError, IOFailure
from fielddesign.models import DesignKind, DesignParameters, LayoutOrder, TreatmentSet
from fielddesign.randomizer import frequency_table
from fielddesign.services import DesignService, ExportService

logger = logging.getLogger(__name__)

# kg/ha
NK_LEVELS: Dict[str, List[int]] = {
    "nitrogen": [0, 100, 200],
    "potassium": [0, 30, 60],
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def run() -> int:
    """Run both designs and write tables and field maps to the output dir."""
    configure_logging()
    logger.info(f"=== {settings.app_name} ===")

    design_service = DesignService()
    export_service = ExportService(design_service)
    treatments = TreatmentSet.factorial(NK_LEVELS)

    outputs = [
        (DesignKind.CRD, settings.crd_table_filename, settings.crd_map_filename),
        (DesignKind.RCBD, settings.rcbd_table_filename, settings.rcbd_map_filename),
    ]

    try:
        for kind, table_name, map_name in outputs:
            params = DesignParameters(
                kind=kind,
                replicates=settings.default_replicates,
                seed=settings.default_seed,
                rows=settings.grid_rows,
                cols=settings.grid_cols,
                order=LayoutOrder.ROW_MAJOR
            )
            result = design_service.generate_design(treatments, params)
            if result.has_errors:
                logger.error(f"{kind.value.upper()} design failed its checks")
                return 1

            counts = frequency_table(result.assignments)
            logger.info(f"Plots per treatment: {counts.to_dict()}")

            export_service.export_table(result, settings.output_dir / table_name)
            export_service.render_map(
                result.layout,
                settings.output_dir / map_name,
                title=f"{kind.value.upper()} field layout (seed {params.seed})"
            )
    except (DesignError, IOFailure) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(run())
