"""
HTTP contract of the /movies routes.
"""
import uuid

import pytest


@pytest.fixture
def five_movies(make_movie):
    return [
        make_movie(name=f"Film {n}", category="Drama" if n % 2 else "Action", language="English", year=2020 + n, time=90 + n)
        for n in range(5)
    ]


def test_list_movies_contract(client, five_movies):
    response = client.get("/movies", params={"pageNumber": "3"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"movies", "page", "pages", "totalMovies"}
    assert body["page"] == 3
    assert body["pages"] == 3
    assert body["totalMovies"] == 5
    assert [m["name"] for m in body["movies"]] == ["Film 0"]

    movie = body["movies"][0]
    for key in ("id", "name", "desc", "titleImage", "category", "language", "year", "time",
                "rate", "numberOfReviews", "reviews", "createdAt"):
        assert key in movie


def test_list_movies_defaults_to_first_page_newest_first(client, five_movies):
    body = client.get("/movies", params={"pageNumber": "abc"}).json()

    assert body["page"] == 1
    assert [m["name"] for m in body["movies"]] == ["Film 4", "Film 3"]


def test_list_movies_filters(client, five_movies):
    body = client.get("/movies", params={"category": "Drama", "year": "2023"}).json()
    assert [m["name"] for m in body["movies"]] == ["Film 3"]
    assert body["totalMovies"] == 1

    body = client.get("/movies", params={"search": "film", "category": "Action"}).json()
    assert body["totalMovies"] == 3


def test_list_movies_huge_page_number(client, five_movies):
    response = client.get("/movies", params={"pageNumber": "99999999999999999999"})

    assert response.status_code == 200
    body = response.json()
    assert body["page"] == 1
    assert [m["name"] for m in body["movies"]] == ["Film 4", "Film 3"]


def test_list_movies_out_of_range_filter(client, five_movies):
    response = client.get("/movies", params={"year": "99999999999999999999"})

    assert response.status_code == 422
    assert "year" in response.json()["detail"]


def test_list_movies_without_matches(client, five_movies):
    body = client.get("/movies", params={"language": "Klingon"}).json()
    assert body == {"movies": [], "page": 1, "pages": 0, "totalMovies": 0}


def test_list_movies_malformed_filter(client, five_movies):
    response = client.get("/movies", params={"year": "last-year"})

    assert response.status_code == 422
    assert "year" in response.json()["detail"]


def test_get_movie(client, five_movies):
    movie = five_movies[1]
    response = client.get(f"/movies/{movie.id}")

    assert response.status_code == 200
    assert response.json()["name"] == movie.name


@pytest.mark.parametrize("movie_id", ["nope", uuid.uuid4().hex])
def test_get_movie_not_found(client, five_movies, movie_id):
    response = client.get(f"/movies/{movie_id}")

    assert response.status_code == 404
    assert response.json() == {"detail": "Movie not found"}


def test_top_rated(client, make_movie):
    for rate in (2.0, 4.5, 3.0):
        make_movie(rate=rate)

    body = client.get("/movies/rated/top").json()
    assert [m["rate"] for m in body] == [4.5, 3.0, 2.0]


def test_random_movies(client, five_movies):
    assert len(client.get("/movies/random/all").json()) == 5
    assert len(client.get("/movies/random/all", params={"size": 2}).json()) == 2
    assert client.get("/movies/random/all", params={"size": 0}).status_code == 422


def test_review_requires_login(client, five_movies):
    response = client.post(f"/movies/{five_movies[0].id}/reviews", json={"rating": 4, "comment": "Nice"})
    assert response.status_code == 401


def test_submit_review_and_reject_second_one(client, five_movies, user_headers):
    movie_id = five_movies[0].id

    response = client.post(f"/movies/{movie_id}/reviews", json={"rating": 4, "comment": "Nice"}, headers=user_headers)
    assert response.status_code == 201
    assert response.json() == {"message": "Review added", "movieId": movie_id, "rate": 4.0, "numberOfReviews": 1}

    response = client.post(f"/movies/{movie_id}/reviews", json={"rating": 1, "comment": "Again"}, headers=user_headers)
    assert response.status_code == 400
    assert response.json() == {"detail": "You already reviewed this movie"}

    movie = client.get(f"/movies/{movie_id}").json()
    assert movie["numberOfReviews"] == 1
    assert movie["rate"] == 4.0
    review = movie["reviews"][0]
    assert review["userName"] == "Rita Reviewer"
    assert review["userImage"] == "/avatars/rita.png"
    assert review["comment"] == "Nice"


def test_reviews_from_several_users_average(client, five_movies, make_user, login):
    movie_id = five_movies[2].id
    for rating in (4, 5, 3, 2):
        headers = login(make_user().email)
        client.post(f"/movies/{movie_id}/reviews", json={"rating": rating, "comment": "ok"}, headers=headers)

    movie = client.get(f"/movies/{movie_id}").json()
    assert movie["rate"] == 3.5
    assert movie["numberOfReviews"] == 4


@pytest.mark.parametrize("body", [{"rating": 6, "comment": "x"}, {"rating": 0, "comment": "x"}, {"rating": 3, "comment": ""}, {"rating": 3}])
def test_submit_invalid_review(client, five_movies, user_headers, body):
    response = client.post(f"/movies/{five_movies[0].id}/reviews", json=body, headers=user_headers)
    assert response.status_code == 422


def test_review_unknown_movie(client, user_headers):
    response = client.post(f"/movies/{uuid.uuid4().hex}/reviews", json={"rating": 3, "comment": "?"}, headers=user_headers)
    assert response.status_code == 404


def test_import_requires_admin(client, user_headers):
    payload = [{"name": "Orbit Zero"}]

    assert client.post("/movies/import", json=payload).status_code == 401
    assert client.post("/movies/import", json=payload, headers=user_headers).status_code == 403


def test_import_replaces_catalog(client, five_movies, admin_headers):
    old_id = five_movies[0].id
    payload = [
        {"name": "Orbit Zero", "desc": "Derelict station.", "category": "Sci-Fi", "year": 2023, "time": 131},
        {"name": "Paper Kites", "titleImage": "/images/6.jpg", "language": "English"},
    ]

    response = client.post("/movies/import", json=payload, headers=admin_headers)

    assert response.status_code == 201
    imported = response.json()
    assert sorted(m["name"] for m in imported) == ["Orbit Zero", "Paper Kites"]
    assert all(m["rate"] == 0.0 and m["numberOfReviews"] == 0 for m in imported)

    body = client.get("/movies").json()
    assert body["totalMovies"] == 2
    orbit = next(m for m in imported if m["name"] == "Orbit Zero")
    assert client.get(f"/movies/{orbit['id']}").json()["desc"] == "Derelict station."
    assert client.get(f"/movies/{old_id}").status_code == 404


def test_create_movie(client, admin_headers, user_headers):
    payload = {"name": "Small Hours", "category": "Thriller", "year": 2016, "time": 101}

    assert client.post("/movies", json=payload, headers=user_headers).status_code == 403

    response = client.post("/movies", json=payload, headers=admin_headers)
    assert response.status_code == 201
    created = response.json()
    assert created["name"] == "Small Hours"
    assert created["numberOfReviews"] == 0
    assert client.get(f"/movies/{created['id']}").status_code == 200


def test_metrics_and_health(client, five_movies):
    client.get("/movies")

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "catalog_requests_total" in metrics.text
    assert "review_submissions_total" in metrics.text

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["database"] == "reachable"
