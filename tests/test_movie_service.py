"""
Tests for movie business rules: per-owner duplicates, ownership as a
lookup filter, pagination/search and image cleanup on update/remove.
"""

import math
from datetime import timedelta

import pytest

from movie_api.core.errors import ConflictError, NotFoundError
from movie_api.models.movie import Movie, MovieCreate, MovieQuery, MovieUpdate
from movie_api.models.user import User
from movie_api.repositories.upload_repo import find_upload, record_upload
from movie_api.services.movie_service import (
    create_movie,
    get_movie,
    list_movies,
    remove_movie,
    update_movie,
)


def movie(title="Up", year=2009, image="http://h/images/up.jpg"):
    return MovieCreate(title=title, publish_year=year, image_url=image)


@pytest.fixture
def owners(make_user):
    return make_user(email="a@x.com"), make_user(email="b@x.com")


class TestCreate:
    """Test duplicate detection on create."""

    def test_same_movie_for_two_owners(self, db, owners):
        a, b = owners
        first = create_movie(db, a.id, movie())
        second = create_movie(db, b.id, movie())
        assert first.owner_id == a.id
        assert second.owner_id == b.id

    def test_duplicate_for_same_owner(self, db, owners):
        a, _ = owners
        create_movie(db, a.id, movie())
        with pytest.raises(ConflictError):
            create_movie(db, a.id, movie())

    def test_different_year_or_title_is_fine(self, db, owners):
        a, _ = owners
        create_movie(db, a.id, movie())
        create_movie(db, a.id, movie(year=2010))
        create_movie(db, a.id, movie(title="Up!"))


class TestOwnership:
    """A movie owned by someone else looks exactly like a missing one."""

    def test_get_update_remove_other_owner(self, db, owners, cleaner):
        a, b = owners
        created = create_movie(db, a.id, movie())
        missing_id = created.id + 1000

        errors = []
        for movie_id in (created.id, missing_id):
            for call in (
                lambda: get_movie(db, movie_id, b.id),
                lambda: update_movie(db, movie_id, b.id, MovieUpdate(title="X"), cleaner),
                lambda: remove_movie(db, movie_id, b.id, cleaner),
            ):
                with pytest.raises(NotFoundError) as exc_info:
                    call()
                errors.append((exc_info.value.status_code, exc_info.value.detail))

        assert len(set(errors)) == 1
        assert cleaner.calls == []
        assert get_movie(db, created.id, a.id).title == "Up"


class TestList:
    """Test pagination and search."""

    @pytest.mark.parametrize("n,limit,page", [
        (0, 10, 1), (7, 10, 1), (25, 10, 1), (25, 10, 3), (25, 10, 4), (30, 15, 2),
    ])
    def test_pagination(self, db, owners, n, limit, page):
        a, b = owners
        for i in range(n):
            create_movie(db, a.id, movie(title=f"Movie {i}"))
        create_movie(db, b.id, movie(title="Not mine"))

        result = list_movies(db, a.id, MovieQuery(page=page, limit=limit))

        assert len(result.items) == min(limit, max(0, n - (page - 1) * limit))
        assert result.total == n
        assert result.total_pages == math.ceil(n / limit)
        assert all(m.owner_id == a.id for m in result.items)

    def test_limit_is_clamped_to_minimum(self, db, owners):
        a, _ = owners
        for i in range(12):
            create_movie(db, a.id, movie(title=f"Movie {i}"))

        result = list_movies(db, a.id, MovieQuery(limit=3))

        assert result.limit == 10
        assert len(result.items) == 10
        assert result.total_pages == 2

    def test_newest_first(self, db, owners):
        a, _ = owners
        for title in ("First", "Second", "Third"):
            create_movie(db, a.id, movie(title=title))

        titles = [m.title for m in list_movies(db, a.id, MovieQuery()).items]

        assert titles == ["Third", "Second", "First"]

    def test_search_title_case_insensitive(self, db, owners):
        a, _ = owners
        create_movie(db, a.id, movie(title="The Matrix", year=1999))
        create_movie(db, a.id, movie(title="Up", year=2009))

        result = list_movies(db, a.id, MovieQuery(search="matr"))

        assert [m.title for m in result.items] == ["The Matrix"]

    def test_numeric_search_matches_title_or_year(self, db, owners):
        a, b = owners
        create_movie(db, a.id, movie(title="2012", year=2009))
        create_movie(db, a.id, movie(title="Skyfall", year=2012))
        create_movie(db, a.id, movie(title="Up", year=2009))
        create_movie(db, b.id, movie(title="Other", year=2012))

        result = list_movies(db, a.id, MovieQuery(search="2012"))

        assert sorted(m.title for m in result.items) == ["2012", "Skyfall"]
        assert result.total == 2

    def test_search_treats_wildcards_literally(self, db, owners):
        a, _ = owners
        create_movie(db, a.id, movie(title="100% Wolf", year=2020))
        create_movie(db, a.id, movie(title="Up", year=2009))

        assert list_movies(db, a.id, MovieQuery(search="%")).total == 1

    @pytest.mark.parametrize("term", ["élite", "ÉLITE", "Élite Squad"])
    def test_search_folds_non_ascii_case(self, db, owners, term):
        a, _ = owners
        create_movie(db, a.id, movie(title="Élite Squad", year=2007))

        result = list_movies(db, a.id, MovieQuery(search=term))

        assert [m.title for m in result.items] == ["Élite Squad"]

    def test_search_follows_renamed_title(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie(title="Up"))
        update_movie(db, created.id, a.id, MovieUpdate(title="Ōkami"), cleaner)

        assert list_movies(db, a.id, MovieQuery(search="ōKAMI")).total == 1
        assert list_movies(db, a.id, MovieQuery(search="up")).total == 0


class TestUpdate:
    """Test patching, re-validation and image cleanup."""

    def test_patch_title(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie())

        updated = update_movie(db, created.id, a.id, MovieUpdate(title="Up 2"), cleaner)

        assert updated.title == "Up 2"
        assert updated.publish_year == 2009
        assert updated.updated_at >= created.updated_at
        assert cleaner.calls == []

    def test_patch_into_duplicate_uses_stored_values_for_missing_fields(self, db, owners, cleaner):
        a, _ = owners
        create_movie(db, a.id, movie(title="Up", year=2009))
        other = create_movie(db, a.id, movie(title="Cars", year=2009))

        with pytest.raises(ConflictError):
            update_movie(db, other.id, a.id, MovieUpdate(title="Up"), cleaner)

    def test_patch_year_into_duplicate(self, db, owners, cleaner):
        a, _ = owners
        create_movie(db, a.id, movie(title="Up", year=2009))
        other = create_movie(db, a.id, movie(title="Up", year=2010))

        with pytest.raises(ConflictError):
            update_movie(db, other.id, a.id, MovieUpdate(publish_year=2009), cleaner)

    def test_patch_with_own_values_is_not_a_duplicate(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie())

        updated = update_movie(db, created.id, a.id, MovieUpdate(title="Up", publish_year=2009), cleaner)

        assert updated.id == created.id

    def test_new_image_deletes_old_one_once(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie(image="/images/old.jpg"))

        updated = update_movie(db, created.id, a.id, MovieUpdate(image_url="/images/new.jpg"), cleaner)

        assert updated.image_url == "/images/new.jpg"
        assert cleaner.calls == ["/images/old.jpg"]

    def test_same_image_deletes_nothing(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie(image="/images/old.jpg"))

        update_movie(db, created.id, a.id, MovieUpdate(image_url="/images/old.jpg"), cleaner)

        assert cleaner.calls == []

    def test_old_image_deleted_even_when_update_conflicts(self, db, owners, cleaner):
        a, _ = owners
        create_movie(db, a.id, movie(title="Up", year=2009))
        other = create_movie(db, a.id, movie(title="Cars", year=2009, image="/images/cars.jpg"))

        with pytest.raises(ConflictError):
            update_movie(
                db, other.id, a.id,
                MovieUpdate(title="Up", image_url="/images/cars2.jpg"),
                cleaner,
            )

        assert cleaner.calls == ["/images/cars.jpg"]


class TestRemove:
    """Test deletion and its image cleanup."""

    def test_remove_deletes_record_then_image(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie())

        remove_movie(db, created.id, a.id, cleaner)

        assert cleaner.calls == ["http://h/images/up.jpg"]
        with pytest.raises(NotFoundError):
            get_movie(db, created.id, a.id)

    def test_remove_twice(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie())
        remove_movie(db, created.id, a.id, cleaner)

        with pytest.raises(NotFoundError):
            remove_movie(db, created.id, a.id, cleaner)
        assert len(cleaner.calls) == 1


class TestTimestamps:
    """New rows are stamped with timezone-aware UTC times."""

    def test_defaults_are_utc_aware(self):
        new_movie = Movie(title="Up", publish_year=2009, image_url="x", owner_id=1)
        new_user = User(email="a@x.com", hashed_password="x")

        for stamp in (new_movie.created_at, new_movie.updated_at, new_user.created_at):
            assert stamp.utcoffset() == timedelta(0)

    def test_create_and_update_persist(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie())

        updated = update_movie(db, created.id, a.id, MovieUpdate(publish_year=2010), cleaner)

        assert updated.publish_year == 2010
        assert updated.created_at is not None


class TestUploadedImageOwnership:
    """Only the uploader's movies may remove an uploaded image."""

    def test_other_users_upload_is_kept(self, db, owners, cleaner):
        a, b = owners
        record_upload(db, "images/a.png", a.id)
        created = create_movie(db, b.id, movie(image="/images/a.png"))

        remove_movie(db, created.id, b.id, cleaner)

        assert cleaner.calls == []
        assert find_upload(db, "images/a.png").owner_id == a.id

    def test_other_users_upload_is_kept_on_image_change(self, db, owners, cleaner):
        a, b = owners
        record_upload(db, "images/a.png", a.id)
        created = create_movie(db, b.id, movie(image="http://localhost:3000/images/a.png"))

        update_movie(db, created.id, b.id, MovieUpdate(image_url="/images/b.png"), cleaner)

        assert cleaner.calls == []

    def test_own_upload_is_removed(self, db, owners, cleaner):
        a, _ = owners
        record_upload(db, "images/a.png", a.id)
        created = create_movie(db, a.id, movie(image="/images/a.png"))

        remove_movie(db, created.id, a.id, cleaner)

        assert cleaner.calls == ["/images/a.png"]

    def test_unrecorded_image_is_removed(self, db, owners, cleaner):
        a, _ = owners
        created = create_movie(db, a.id, movie(image="/images/legacy.png"))

        remove_movie(db, created.id, a.id, cleaner)

        assert cleaner.calls == ["/images/legacy.png"]
