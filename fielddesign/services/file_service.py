"""Treatment definition file parsing service."""
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from fielddesign.models import Treatment, TreatmentSet
from fielddesign.models.treatment import RESERVED_COLUMNS

logger = logging.getLogger(__name__)


class FileService:
    """Service for parsing treatment definition files."""

    # Column name mappings
    COLUMN_MAPPING = {
        'id': ['id', 'treatment_id', 'Treatment ID', 'Treatment', 'trt'],
        'name': ['name', 'treatment_name', 'Treatment Name', 'Label', 'label'],
        'code': ['code', 'numeric_code', 'treatment_code', 'Code', 'No', 'number'],
    }

    def parse_path(self, path: Union[str, Path]) -> TreatmentSet:
        """Parse a treatment file from disk."""
        path = Path(path)
        return self.parse_file(path.read_bytes(), path.name)

    def parse_file(self, content: bytes, filename: str) -> TreatmentSet:
        """
        Parse a treatment table and return a TreatmentSet.

        Every column that is not an id, name or code column is read as a
        factor, e.g. ``nitrogen`` and ``potassium``.

        Args:
            content: File content as bytes
            filename: Original filename

        Returns:
            TreatmentSet in file order
        """
        lower = filename.lower()
        if lower.endswith('.csv'):
            df = self._parse_csv(content)
        elif lower.endswith(('.xlsx', '.xls')):
            df = pd.read_excel(io.BytesIO(content))
        else:
            raise ValueError(f"Unsupported file format: {filename}")

        df = df.dropna(how='all')
        column_map = self._detect_columns(df)
        factor_columns = [c for c in df.columns if c not in column_map.values()]
        clashes = sorted(str(c) for c in factor_columns if str(c) in RESERVED_COLUMNS)
        if clashes:
            raise ValueError(f"Factor columns clash with plan columns: {', '.join(clashes)}")

        treatments: List[Treatment] = []
        for idx, (_, row) in enumerate(df.iterrows(), start=1):
            factors = {
                str(col): self._native(row[col])
                for col in factor_columns
                if not pd.isna(row[col])
            }
            treatment_id = str(row[column_map['id']]).strip()
            if not treatment_id or treatment_id == 'nan':
                continue

            name = treatment_id
            if 'name' in column_map and not pd.isna(row[column_map['name']]):
                name = str(row[column_map['name']])

            code = idx
            if 'code' in column_map:
                try:
                    code = int(row[column_map['code']])
                except (ValueError, TypeError):
                    raise ValueError(
                        f"Invalid treatment code for {treatment_id}: {row[column_map['code']]!r}"
                    )

            treatments.append(Treatment(
                id=treatment_id,
                name=name,
                numeric_code=code,
                factors=factors
            ))

        if not treatments:
            raise ValueError("No treatments found in file")

        logger.info(f"Parsed {len(treatments)} treatments from {filename}")
        return TreatmentSet(treatments)

    def _parse_csv(self, content: bytes) -> pd.DataFrame:
        """Parse CSV file."""
        # Try different encodings
        for encoding in ['utf-8', 'latin1']:
            try:
                return pd.read_csv(io.BytesIO(content), encoding=encoding)
            except UnicodeDecodeError:
                continue
        raise ValueError("Cannot decode CSV file")

    def _detect_columns(self, df: pd.DataFrame) -> Dict[str, str]:
        """Detect column mappings."""
        column_map = {}

        for standard_name, aliases in self.COLUMN_MAPPING.items():
            for col in df.columns:
                if str(col).lower() in [a.lower() for a in aliases]:
                    column_map[standard_name] = col
                    break

        if 'id' not in column_map:
            raise ValueError("Missing required column: treatment id")

        return column_map

    @staticmethod
    def _native(value: Any) -> Any:
        """Convert numpy scalars to plain Python values."""
        if hasattr(value, 'item'):
            value = value.item()
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value
