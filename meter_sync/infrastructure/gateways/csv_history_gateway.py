"""
Infrastructure Gateway - Linky CSV History

Reads the load curve exports downloaded from the Enedis customer area, to
import history older than what the Linky API can still serve.

Expected layout, ``;`` separated with a UTF-8 BOM::

    Identifiant PRM;Type de donnees;Date de debut;Date de fin;...
    12345678901234;Courbe de charge;...
    Horodate;Valeur
    2023-01-01T00:30:00+01:00;532
"""

from datetime import datetime, tzinfo
from pathlib import Path
from typing import List, Optional

import pandas as pd
import structlog

from meter_sync.domain.entities.meter import MeterConfig, ProviderKind
from meter_sync.domain.entities.time_series import DataPoint, RawSample
from meter_sync.domain.gateways.history_archive_gateway import IHistoryArchiveGateway
from meter_sync.domain.services.normalizer import normalize_load_curve

logger = structlog.get_logger(__name__)

CSV_OPTIONS = {"sep": ";", "encoding": "utf-8-sig", "dtype": str}
PRM_COLUMN = "Identifiant PRM"
DATE_COLUMN = "Horodate"
VALUE_COLUMN = "Valeur"
INTERVAL_COLUMN = "Pas"


class CsvHistoryGateway(IHistoryArchiveGateway):
    """Finds the Enedis export matching a Linky meter in a directory."""

    def __init__(self, directory: str, timezone: Optional[tzinfo] = None):
        self.directory = Path(directory)
        self.timezone = timezone

    async def find_history(self, meter: MeterConfig) -> List[DataPoint]:
        if meter.provider != ProviderKind.LINKY or meter.production:
            return []

        if not self.directory.is_dir():
            logger.debug("csv.directory_missing", directory=str(self.directory))
            return []

        files = sorted(self.directory.glob("*.csv"))
        logger.debug("csv.files_found", directory=str(self.directory), count=len(files))

        for path in files:
            try:
                if self.read_prm(path) == meter.id:
                    return self.read_history(path)
            except (OSError, ValueError, KeyError, pd.errors.ParserError) as e:
                logger.error("csv.read_failed", file=path.name, error=str(e))

        return []

    @staticmethod
    def read_prm(path: Path) -> Optional[str]:
        """Return the PRM stated on the metadata line of an export."""
        metadata = pd.read_csv(path, nrows=1, **CSV_OPTIONS)
        if PRM_COLUMN not in metadata.columns or metadata.empty:
            return None
        value = metadata.iloc[0][PRM_COLUMN]
        return None if pd.isna(value) else str(value).strip()

    def read_history(self, path: Path) -> List[DataPoint]:
        """Read the load curve of an export as hourly points."""
        frame = pd.read_csv(path, skiprows=2, **CSV_OPTIONS)
        frame = frame.dropna(subset=[DATE_COLUMN, VALUE_COLUMN])

        has_interval = INTERVAL_COLUMN in frame.columns
        samples = [
            RawSample(
                timestamp=datetime.fromisoformat(row[DATE_COLUMN].strip()),
                raw_value=row[VALUE_COLUMN].strip(),
                interval_length_minutes=row[INTERVAL_COLUMN] if has_interval else None,
            )
            for _, row in frame.iterrows()
        ]

        if not samples:
            logger.warning("csv.history_empty", file=path.name)
            return []

        logger.info(
            "csv.history_found",
            file=path.name,
            count=len(samples),
            date_from=samples[0].timestamp.isoformat(),
            date_to=samples[-1].timestamp.isoformat(),
        )
        return normalize_load_curve(samples, self.timezone)
