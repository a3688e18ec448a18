from datetime import datetime, timedelta

import pytest

from knowledgehub.db.models import Post, post_categories, post_tags
from knowledgehub.services import categories as categories_service
from knowledgehub.services import posts as posts_service
from knowledgehub.services import tags as tags_service
from knowledgehub.services import users as users_service
from knowledgehub.services.errors import ConflictError, InvalidFieldError, InvalidReferenceError


@pytest.fixture
def tech(db):
    return categories_service.create_category(db, "Tech")


@pytest.fixture
def design(db):
    return categories_service.create_category(db, "Design")


@pytest.fixture
def python_tag(db):
    return tags_service.create_tag(db, "Python")


def make_post(db, author, title, content="Some content", **kwargs):
    return posts_service.create_post(db, title=title, content=content, author_id=author.id, **kwargs)


def age_posts(db, *posts):
    """Give posts distinct creation times, oldest first."""
    start = datetime(2024, 1, 1)
    for offset, post in enumerate(posts):
        db.query(Post).filter(Post.id == post.id).update({"created_at": start + timedelta(days=offset)})
    db.commit()


def junction_count(db, table, post_id):
    return db.query(table).filter(table.c.post_id == post_id).count()


class TestCreate:
    def test_end_to_end_scenario(self, db, author, tech):
        post = make_post(db, author, "Hello World", content="word " * 400, categories=[tech.id])

        assert post.slug == "hello-world"
        assert post.reading_time == 2
        assert post.views == 0
        assert post.published is False
        assert post.published_at is None
        assert [c.name for c in post.categories] == ["Tech"]

        post = posts_service.update_post(db, post.id, {"published": True})
        assert post.published is True
        assert post.published_at is not None

        found = posts_service.get_post_by_slug(db, "hello-world")
        posts_service.increment_views(db, found.id)
        db.expire_all()
        assert posts_service.get_post_by_slug(db, "hello-world").views == 1

    def test_resolves_author_categories_and_tags(self, db, author, tech, design, python_tag):
        post = make_post(db, author, "Resolved", categories=[design.id, tech.id], tags=[python_tag.id])

        assert post.author.email == author.email
        assert {c.name for c in post.categories} == {"Tech", "Design"}
        assert [t.name for t in post.tags] == ["Python"]

    def test_association_order_does_not_matter(self, db, author, tech, design, python_tag):
        first = make_post(db, author, "First", categories=[tech.id, design.id], tags=[python_tag.id])
        second = make_post(db, author, "Second", categories=[design.id, tech.id], tags=[python_tag.id])

        db.expire_all()
        first = posts_service.get_post(db, first.id)
        second = posts_service.get_post(db, second.id)
        assert {c.id for c in first.categories} == {c.id for c in second.categories} == {tech.id, design.id}
        assert {t.id for t in first.tags} == {python_tag.id}

    def test_duplicate_ids_are_collapsed(self, db, author, tech):
        post = make_post(db, author, "Dupes", categories=[tech.id, tech.id])
        assert junction_count(db, post_categories, post.id) == 1

    def test_published_at_stamped_when_created_published(self, db, author):
        post = make_post(db, author, "Live", published=True, featured=True)
        assert post.published is True
        assert post.featured is True
        assert post.published_at is not None

    def test_supplied_slug_and_reading_time_are_kept(self, db, author):
        post = make_post(db, author, "Custom", slug="my-own-slug", reading_time=7)
        assert post.slug == "my-own-slug"
        assert post.reading_time == 7

    def test_duplicate_slug_is_conflict(self, db, author):
        make_post(db, author, "Same Title")
        with pytest.raises(ConflictError) as exc_info:
            make_post(db, author, "Same title!")
        assert exc_info.value.table == "posts"
        assert posts_service.count_posts(db) == 1

    def test_unknown_category_is_invalid_reference(self, db, author):
        with pytest.raises(InvalidReferenceError):
            make_post(db, author, "Orphan", categories=["no-such-category"])
        assert posts_service.get_post_by_slug(db, "orphan") is None

    def test_unknown_author_is_invalid_reference(self, db):
        with pytest.raises(InvalidReferenceError):
            posts_service.create_post(db, title="Nobody", content="text", author_id="no-such-user")

    def test_title_without_letters_is_rejected(self, db, author):
        with pytest.raises(InvalidFieldError):
            make_post(db, author, "!!!")
        assert posts_service.list_posts(db) == []

    def test_supplied_slug_is_normalized(self, db, author):
        post = make_post(db, author, "Anything", slug="My Own Slug")
        assert post.slug == "my-own-slug"

    def test_reading_time_is_at_least_one(self, db, author):
        post = make_post(db, author, "Negative", reading_time=-3)
        assert post.reading_time == 1


class TestUpdate:
    def test_only_supplied_fields_change(self, db, author):
        post = make_post(db, author, "Original", content="one two three", excerpt="Short")
        updated = posts_service.update_post(db, post.id, {"title": "Renamed"})

        assert updated.title == "Renamed"
        assert updated.slug == "original"
        assert updated.content == "one two three"
        assert updated.excerpt == "Short"

    def test_content_change_recomputes_reading_time(self, db, author):
        post = make_post(db, author, "Grows", content="short", reading_time=9)
        updated = posts_service.update_post(db, post.id, {"content": "word " * 1000})
        assert updated.reading_time == 5

    def test_clearable_fields(self, db, author):
        post = make_post(db, author, "Clear Me", excerpt="Excerpt", cover_image="https://example.com/a.png")
        updated = posts_service.update_post(db, post.id, {"excerpt": None, "cover_image": ""})
        assert updated.excerpt is None
        assert updated.cover_image is None

    def test_empty_categories_remove_all_associations(self, db, author, tech, design, python_tag):
        post = make_post(db, author, "Replace", categories=[tech.id, design.id], tags=[python_tag.id])

        updated = posts_service.update_post(db, post.id, {"categories": []})

        assert updated.categories == []
        assert [t.name for t in updated.tags] == ["Python"]
        assert junction_count(db, post_categories, post.id) == 0

    def test_categories_are_replaced_not_merged(self, db, author, tech, design):
        post = make_post(db, author, "Swap", categories=[tech.id])
        updated = posts_service.update_post(db, post.id, {"categories": [design.id]})
        assert [c.name for c in updated.categories] == ["Design"]

    def test_absent_or_none_associations_are_left_alone(self, db, author, tech, python_tag):
        post = make_post(db, author, "Keep", categories=[tech.id], tags=[python_tag.id])

        posts_service.update_post(db, post.id, {"title": "Keep Renamed"})
        updated = posts_service.update_post(db, post.id, {"categories": None, "tags": None})

        assert [c.name for c in updated.categories] == ["Tech"]
        assert [t.name for t in updated.tags] == ["Python"]

    def test_republish_keeps_timestamp_by_default(self, db, author):
        post = make_post(db, author, "Stable", published=True)
        first_stamp = post.published_at

        updated = posts_service.update_post(db, post.id, {"published": True}, restamp_on_republish=False)
        assert updated.published_at == first_stamp

    def test_republish_restamps_when_configured(self, db, author):
        post = make_post(db, author, "Fresh", published=True)
        db.query(Post).filter(Post.id == post.id).update({"published_at": datetime(2020, 1, 1)})
        db.commit()

        updated = posts_service.update_post(db, post.id, {"published": True}, restamp_on_republish=True)
        assert updated.published_at > datetime(2020, 1, 1)

    def test_unpublish_then_publish_restamps(self, db, author):
        post = make_post(db, author, "Cycle", published=True)
        db.query(Post).filter(Post.id == post.id).update({"published_at": datetime(2020, 1, 1)})
        db.commit()

        posts_service.set_published(db, post.id, False)
        updated = posts_service.set_published(db, post.id, True)
        assert updated.published_at > datetime(2020, 1, 1)

    def test_slug_conflict_on_update(self, db, author):
        make_post(db, author, "Taken")
        post = make_post(db, author, "Free")
        with pytest.raises(ConflictError):
            posts_service.update_post(db, post.id, {"slug": "taken"})
        assert posts_service.get_post(db, post.id).slug == "free"

    def test_empty_slug_or_blank_title_is_rejected(self, db, author):
        post_id = make_post(db, author, "Stable").id
        with pytest.raises(InvalidFieldError):
            posts_service.update_post(db, post_id, {"slug": ""})
        with pytest.raises(InvalidFieldError):
            posts_service.update_post(db, post_id, {"title": "   "})
        post = posts_service.get_post(db, post_id)
        assert post.slug == "stable"
        assert post.title == "Stable"

    def test_missing_post_returns_none(self, db):
        assert posts_service.update_post(db, "missing", {"title": "x"}) is None


class TestReads:
    def test_missing_lookups_return_none(self, db):
        assert posts_service.get_post(db, "missing") is None
        assert posts_service.get_post_by_slug(db, "missing") is None

    def test_filters_combine_and_order_newest_first(self, db, author):
        draft = make_post(db, author, "Draft")
        plain = make_post(db, author, "Plain", published=True)
        star = make_post(db, author, "Star", published=True, featured=True)
        age_posts(db, draft, plain, star)

        assert [p.title for p in posts_service.list_posts(db)] == ["Star", "Plain", "Draft"]
        assert [p.title for p in posts_service.list_posts(db, published=True)] == ["Star", "Plain"]
        assert [p.title for p in posts_service.list_posts(db, published=False)] == ["Draft"]
        assert [p.title for p in posts_service.list_posts(db, published=True, featured=False)] == ["Plain"]
        assert [p.title for p in posts_service.list_posts(db, featured=True)] == ["Star"]
        assert posts_service.count_posts(db, published=True) == 2

    def test_pagination(self, db, author):
        posts = [make_post(db, author, f"Post {n}") for n in range(5)]
        age_posts(db, *posts)

        page = posts_service.list_posts(db, limit=2, offset=1)
        assert [p.title for p in page] == ["Post 3", "Post 2"]

    def test_list_loads_relations(self, db, author, tech):
        make_post(db, author, "With Category", categories=[tech.id])
        db.expire_all()
        post = posts_service.list_posts(db)[0]
        assert post.author.id == author.id
        assert [c.name for c in post.categories] == ["Tech"]


class TestSearch:
    def test_only_published_case_insensitive(self, db, author):
        make_post(db, author, "Learning Next", published=True)
        make_post(db, author, "Other", content="all about NEXT.js", published=True)
        make_post(db, author, "Excerpt Hit", excerpt="what comes next", published=True)
        make_post(db, author, "Secret Next Draft", published=False)
        make_post(db, author, "Unrelated", published=True)

        titles = {p.title for p in posts_service.search_posts(db, "next")}
        assert titles == {"Learning Next", "Other", "Excerpt Hit"}

    def test_newest_first(self, db, author):
        older = make_post(db, author, "Python one", published=True)
        newer = make_post(db, author, "Python two", published=True)
        age_posts(db, older, newer)
        assert [p.title for p in posts_service.search_posts(db, "python")] == ["Python two", "Python one"]

    def test_like_wildcards_match_literally(self, db, author):
        make_post(db, author, "Discount", content="save 100% today", published=True)
        make_post(db, author, "Plain", content="save 100 dollars", published=True)
        assert [p.title for p in posts_service.search_posts(db, "100%")] == ["Discount"]


class TestViews:
    def test_increment_n_times(self, db, author):
        post = make_post(db, author, "Counted")
        for _ in range(7):
            posts_service.increment_views(db, post.id)
        db.expire_all()
        assert posts_service.get_post(db, post.id).views == 7


class TestDeleteAndCascade:
    def test_delete_post_removes_junction_rows_only(self, db, author, tech, python_tag):
        post_id = make_post(db, author, "Doomed", categories=[tech.id], tags=[python_tag.id]).id

        assert posts_service.delete_post(db, post_id) is True
        assert posts_service.get_post(db, post_id) is None
        assert junction_count(db, post_categories, post_id) == 0
        assert junction_count(db, post_tags, post_id) == 0
        assert categories_service.get_category(db, tech.id) is not None
        assert tags_service.get_tag(db, python_tag.id) is not None
        assert posts_service.delete_post(db, post_id) is False

    def test_delete_category_keeps_post(self, db, author, tech, design):
        post = make_post(db, author, "Survivor", categories=[tech.id, design.id])

        categories_service.delete_category(db, tech.id)

        survivor = posts_service.get_post(db, post.id)
        assert survivor is not None
        assert [c.name for c in survivor.categories] == ["Design"]

    def test_delete_tag_keeps_post(self, db, author, python_tag):
        post = make_post(db, author, "Tagged", tags=[python_tag.id])
        tags_service.delete_tag(db, python_tag.id)
        assert posts_service.get_post(db, post.id).tags == []

    def test_delete_user_cascades_to_posts_and_junctions(self, db, author, tech, python_tag):
        other = users_service.create_user(db, "other@example.com", "Other", "pw")
        mine_id = make_post(db, author, "Mine", categories=[tech.id], tags=[python_tag.id]).id
        theirs_id = make_post(db, other, "Theirs", categories=[tech.id]).id

        users_service.delete_user(db, author.id)

        assert posts_service.get_post(db, mine_id) is None
        assert junction_count(db, post_categories, mine_id) == 0
        assert junction_count(db, post_tags, mine_id) == 0
        assert posts_service.get_post(db, theirs_id) is not None
        assert categories_service.get_category(db, tech.id) is not None


class TestRelated:
    def test_shares_category_or_tag(self, db, author, tech, design, python_tag):
        anchor = make_post(db, author, "Anchor", published=True, categories=[tech.id], tags=[python_tag.id])
        make_post(db, author, "Same Category", published=True, categories=[tech.id])
        make_post(db, author, "Same Tag", published=True, tags=[python_tag.id])
        make_post(db, author, "Different", published=True, categories=[design.id])
        make_post(db, author, "Draft Sibling", categories=[tech.id])

        anchor = posts_service.get_post(db, anchor.id)
        related = posts_service.get_related_posts(db, anchor)
        assert {p.title for p in related} == {"Same Category", "Same Tag"}

    def test_no_labels_no_related(self, db, author):
        post = make_post(db, author, "Lonely", published=True)
        assert posts_service.get_related_posts(db, post) == []

    def test_category_and_tag_listings(self, db, author, tech, python_tag):
        make_post(db, author, "In Tech", published=True, categories=[tech.id], tags=[python_tag.id])
        make_post(db, author, "Tech Draft", categories=[tech.id])
        assert [p.title for p in posts_service.list_posts_in_category(db, tech.id)] == ["In Tech"]
        assert [p.title for p in posts_service.list_posts_with_tag(db, python_tag.id)] == ["In Tech"]
