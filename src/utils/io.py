"""CSV output utilities."""
import pandas as pd
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
import logging

from src.config import settings

logger = logging.getLogger(__name__)


def timestamped_output_path(prefix: str, out_dir: Optional[Union[str, Path]] = None) -> Path:
    """Return OUT_DIR/<prefix>_YYYYMMDD_HHMM.csv."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M")
    return Path(out_dir or settings.out_dir) / f"{prefix}_{timestamp}.csv"


def write_csv(df: pd.DataFrame, output_path: Union[str, Path], max_rows: Optional[int] = None) -> Path:
    """
    Write a DataFrame to CSV, creating parent directories.

    Args:
        df: DataFrame to write
        output_path: Output file path
        max_rows: Optional cap on the number of rows written

    Returns:
        Path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if max_rows is not None:
        df = df.head(max_rows)
    df.to_csv(output_path, index=False, encoding="utf-8")
    logger.info(f"Wrote {len(df)} rows to {output_path}")
    return output_path
