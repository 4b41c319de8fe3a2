import csv
import io
import math
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from .logging_config import get_logger
from .reconcile_record import Entity

logger = get_logger(__name__)

#accepted CSV headers per logical attribute, first non-empty one wins
FIELD_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "name": ("city", "name", "City", "Name", "city_ascii"),
    "id": ("id", "ID"),
    "province": ("province", "admin_name", "state", "province_name", "Province"),
    "latitude": ("lat", "latitude", "Latitude"),
    "longitude": ("lng", "longitude", "Longitude"),
}

#logical fields reported back after an upload
DATASET_FIELDS = ["city", "province", "latitude", "longitude"]

CSVRow = Mapping[str, Optional[str]]


class DatasetLoadError(Exception):
    """Raised when a dataset cannot be turned into a complete entity collection."""


def get_field(row: CSVRow, logical_name: str) -> Optional[str]:
    for header in FIELD_SYNONYMS[logical_name]:
        raw = row.get(header)
        if not isinstance(raw, str):
            continue
        value = raw.strip()
        if value:
            return value
    return None

def parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value.replace(",", ""))
    except ValueError:
        return None
    return number if math.isfinite(number) else None

def row_to_entity(row: CSVRow) -> Optional[Entity]:
    name = get_field(row, "name")
    if not name:
        return None

    return Entity(
        id=get_field(row, "id") or name,
        name=name,
        province=get_field(row, "province") or "",
        latitude=parse_float(get_field(row, "latitude")),
        longitude=parse_float(get_field(row, "longitude")),
    )

def parse_entities(lines: Iterable[str]) -> List[Entity]:
    """Parse CSV lines into entities, dropping rows without a name."""
    entities: List[Entity] = []
    skipped = 0

    try:
        for row in csv.DictReader(lines):
            entity = row_to_entity(row)
            if entity is None:
                skipped += 1
                continue
            entities.append(entity)
    except csv.Error as e:
        raise DatasetLoadError(f"Malformed CSV: {e}") from e

    if skipped:
        logger.warning(f"Dropped {skipped} rows without a city name")

    if not entities:
        raise DatasetLoadError("No rows with a city name were found")

    return entities

def load_entities_from_csv(path: Path) -> List[Entity]:
    logger.info(f"Loading entities from CSV: {path}")
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            entities = parse_entities(f)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read dataset {path}: {e}")
        raise DatasetLoadError(f"Could not read {path.name}: {e}") from e

    logger.info(f"Parsed {len(entities)} entities from {path.name}")
    return entities

def load_entities_from_bytes(data: bytes, source: str = "upload") -> List[Entity]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DatasetLoadError(f"{source} is not UTF-8 encoded") from e

    entities = parse_entities(io.StringIO(text, newline=""))
    logger.info(f"Parsed {len(entities)} entities from {source}")
    return entities

def check_dataset_exists(path: Path) -> bool:
    exists = path.exists()
    if exists:
        logger.debug(f"Dataset exists: {path}")
    else:
        logger.warning(f"Dataset NOT found: {path}")
    return exists
