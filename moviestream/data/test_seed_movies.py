import io

import pandas as pd
import pytest
from sqlalchemy import select, func

from moviestream.data.seed_movies import DEFAULT_CSV, load_csv, preprocess_movies, seed
from moviestream.db.models.movies import Movie


def test_preprocess_maps_columns_and_drops_nameless_rows():
    df = pd.read_csv(io.StringIO(
        "name,desc,titleImage,year,time,unknown\n"
        "  Orbit Zero ,Derelict station,/img/4.jpg,2023,131,x\n"
        ",No name,/img/0.jpg,2020,90,y\n"
        "Small Hours,,,,101,z\n"
    ), dtype=str)

    records = preprocess_movies(df)

    assert records == [
        {"name": "Orbit Zero", "description": "Derelict station", "title_image": "/img/4.jpg", "year": 2023, "time": 131},
        {"name": "Small Hours", "time": 101},
    ]


def test_preprocess_requires_name_column():
    with pytest.raises(ValueError):
        preprocess_movies(pd.DataFrame({"title": ["x"]}))


def test_load_csv_falls_back_to_latin1(tmp_path):
    path = tmp_path / "movies.csv"
    path.write_bytes("name,language\nAmélie,French\n".encode("latin-1"))

    df = load_csv(str(path))
    assert df.loc[0, "name"] == "Amélie"


def test_seed_replaces_catalog_with_sample_csv(db, make_movie):
    make_movie(name="Old entry")

    n_movies = seed(DEFAULT_CSV)

    assert n_movies == 10
    assert db.scalar(select(func.count()).select_from(Movie)) == 10
    assert db.scalar(select(Movie).where(Movie.name == "Old entry")) is None
