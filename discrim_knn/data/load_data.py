"""
Download, clean and cache the tutorial data sets.

This module provides `fetch_dataset()` which downloads one of the two fixed
data sets (customer churn, home sales) over HTTP, deserializes it into a
pandas DataFrame and caches the result as a parquet file on disk for faster
subsequent access.

R factor and string columns become pandas categoricals, numeric columns are
coerced to floats and date-time columns are dropped so that every remaining
column is either a numeric or a nominal predictor.

The cache file for a data set `name` is `data/processed/<name>.parquet`.
"""

import logging
import os
from urllib.parse import urlparse

import pandas as pd
import pyreadr
import requests

from discrim_knn.config import DATASETS, HTTP_TIMEOUT, PROCESSED_DATA_DIR, RAW_DATA_DIR

logger = logging.getLogger(__name__)


def _dataset_info(name: str) -> dict:
    try:
        return DATASETS[name]
    except KeyError:
        raise KeyError(f"Unknown data set '{name}'. Available: {sorted(DATASETS)}") from None


def download_file(url: str, dest_dir: str = RAW_DATA_DIR) -> str:
    """
    Download `url` into `dest_dir` and return the local file path.

    Raises
    ------
    requests.HTTPError
        If the remote endpoint returns a non-2xx status code.
    ValueError
        If the response body is empty.
    """
    filename = os.path.basename(urlparse(url).path) or "download"
    path = os.path.join(dest_dir, filename)

    logger.info("Fetching %s", url)
    response = requests.get(url, timeout=HTTP_TIMEOUT)
    response.raise_for_status()
    if not response.content:
        raise ValueError(f"Empty response body from {url}")

    os.makedirs(dest_dir, exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(response.content)
    logger.info("Saved %d bytes to %s", len(response.content), path)
    return path


def read_table(path: str) -> pd.DataFrame:
    """Deserialize an `.rds`/`.rdata` or `.csv` file into a DataFrame."""
    ext = os.path.splitext(path)[1].lower()
    if ext in (".rds", ".rdata", ".rda"):
        result = pyreadr.read_r(path)
        if not result:
            raise ValueError(f"No data frame found in {path}")
        return next(iter(result.values()))
    if ext == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported file format '{ext}' for {path}")


def clean_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize column types so recipes can select predictors by role.

    Parameters
    ----------
    df : pd.DataFrame
        Raw data set as deserialized from disk.

    Returns
    -------
    pd.DataFrame
        Copy with nominal columns as `category`, numeric columns as float
        and date-time columns removed.
    """
    df = df.copy()
    dropped = []
    for col in list(df.columns):
        ser = df[col]
        if pd.api.types.is_datetime64_any_dtype(ser):
            dropped.append(col)
        elif pd.api.types.is_bool_dtype(ser):
            df[col] = ser.map({True: "yes", False: "no"}).astype("category")
        elif pd.api.types.is_numeric_dtype(ser):
            df[col] = pd.to_numeric(ser, errors="coerce").astype(float)
        elif not isinstance(ser.dtype, pd.CategoricalDtype):
            df[col] = ser.astype("category")
    if dropped:
        logger.info("Dropping date-time columns %s", dropped)
        df = df.drop(columns=dropped)
    return df.reset_index(drop=True)


def fetch_dataset(
    name: str,
    use_cache: bool = True,
    raw_dir: str = RAW_DATA_DIR,
    processed_dir: str = PROCESSED_DATA_DIR,
) -> pd.DataFrame:
    """
    Load a tutorial data set from the parquet cache or from its remote URL.

    Parameters
    ----------
    name : str
        One of the keys of `config.DATASETS` ('churn', 'home_sales').
    use_cache : bool
        If True and the parquet cache exists, load from cache.

    Returns
    -------
    pd.DataFrame
        Cleaned data set with consistent numeric and categorical types.
    """
    info = _dataset_info(name)
    cache_file = os.path.join(processed_dir, f"{name}.parquet")

    if use_cache and os.path.exists(cache_file):
        logger.info("Loading %s from cache %s", name, cache_file)
        df = pd.read_parquet(cache_file)
    else:
        path = download_file(info["url"], dest_dir=raw_dir)
        df = clean_frame(read_table(path))
        if df.empty:
            raise ValueError(f"Data set '{name}' has no rows")
        if info["outcome"] not in df.columns:
            raise ValueError(f"Data set '{name}' is missing outcome column '{info['outcome']}'")

        os.makedirs(processed_dir, exist_ok=True)
        df.to_parquet(cache_file, index=False)

    logger.info("Loaded %s: %d rows x %d columns", name, df.shape[0], df.shape[1])
    return df


def load_churn(use_cache: bool = True) -> pd.DataFrame:
    """Customer churn data; outcome `canceled_service` (yes/no)."""
    return fetch_dataset("churn", use_cache=use_cache)


def load_home_sales(use_cache: bool = True) -> pd.DataFrame:
    """Home sales data; outcome `selling_price`."""
    return fetch_dataset("home_sales", use_cache=use_cache)
