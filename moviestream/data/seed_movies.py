"""
Loads a CSV of movies and replaces the catalog of the configured database
with it (see `import_movies`). Intended for seeding local and staging setups.

    python -m moviestream.data.seed_movies --csv moviestream/data/movies.csv
"""
import os
import argparse
import logging

from typing import List

import pandas as pd

from moviestream.db.database_session import Base, SessionLocal, engine
from moviestream.db.catalog_requests import import_movies


logger = logging.getLogger(__name__)

DEFAULT_CSV = os.path.join(os.path.dirname(os.path.abspath(__file__)), "movies.csv")

# CSV header (client naming) -> Movie attribute
CSV_COLUMNS = {
    "name": "name",
    "desc": "description",
    "titleImage": "title_image",
    "image": "image",
    "video": "video",
    "category": "category",
    "language": "language",
    "year": "year",
    "time": "time",
}


def load_csv(file_path: str) -> pd.DataFrame:
    """Load CSV with UTF-8 encoding, fallback to latin-1 if needed."""
    try:
        df = pd.read_csv(file_path, dtype=str, encoding="utf-8")
    except UnicodeDecodeError:
        df = pd.read_csv(file_path, dtype=str, encoding="latin-1")
    return df


def preprocess_movies(df: pd.DataFrame) -> List[dict]:
    '''
    Keeps the known columns, drops rows without a name and converts year and
    runtime to integers.

    Parameters
    ----------
    df: pd.DataFrame
        Raw CSV content, one movie per row.

    Returns
    -------
    records: List[dict]
        Movie records keyed by Movie attribute names, missing values omitted.
    '''
    known = [column for column in CSV_COLUMNS if column in df.columns]
    if "name" not in known:
        raise ValueError("Movie CSV needs a 'name' column.")

    df = df[known].rename(columns=CSV_COLUMNS).copy()
    df["name"] = df["name"].str.strip()
    df = df[df["name"].notna() & (df["name"] != "")].copy()

    for column in ("year", "time"):
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors="coerce")

    records = []
    for row in df.to_dict(orient="records"):
        records.append({
            key: (int(value) if key in ("year", "time") else value)
            for key, value in row.items()
            if not pd.isna(value)
        })
    return records


def seed(csv_path: str = DEFAULT_CSV) -> int:
    """Replaces the catalog with the movies of the CSV, returns their number."""
    records = preprocess_movies(load_csv(csv_path))

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        movies = import_movies(db, records)
        return len(movies)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(name)s | %(message)s")

    parser = argparse.ArgumentParser(description="Replace the movie catalog with the movies of a CSV file.")
    parser.add_argument("--csv", default=DEFAULT_CSV, help="Path of the movie CSV file")
    args = parser.parse_args()

    logger.info("Loading movies from %s", args.csv)
    n_movies = seed(args.csv)
    logger.info("Catalog seeded with %d movies.", n_movies)
