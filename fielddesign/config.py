"""Application configuration."""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Field Trial Designer"
    log_level: str = "INFO"

    # Randomization
    default_seed: int = 123
    default_replicates: int = 4
    plot_id_base: int = Field(100, gt=0)  # RCBD plot id = block * base + position

    # Field grid for the bundled N x K example
    grid_rows: int = 4
    grid_cols: int = 9

    # Export
    output_dir: Path = Path("output")
    crd_table_filename: str = "crd_plan.csv"
    rcbd_table_filename: str = "rcbd_plan.csv"
    crd_map_filename: str = "crd_field_map.png"
    rcbd_map_filename: str = "rcbd_field_map.png"

    # Field map rendering (inches, dots per inch)
    map_width: float = 12.0
    map_height: float = 6.0
    map_dpi: int = 150
    colormap: str = "tab20"

    class Config:
        env_file = ".env"
        env_prefix = "FIELDDESIGN_"


settings = Settings()
