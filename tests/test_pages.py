from knowledgehub.services import categories as categories_service
from knowledgehub.services import posts as posts_service
from knowledgehub.services import tags as tags_service


def test_home_lists_featured_and_recent(client, author, db):
    posts_service.create_post(db, title="Star Post", content="x", author_id=author.id, published=True, featured=True)
    posts_service.create_post(db, title="Hidden Draft", content="x", author_id=author.id)

    response = client.get("/")
    assert response.status_code == 200
    assert "Star Post" in response.text
    assert "Hidden Draft" not in response.text


def test_blog_post_renders_markdown_and_counts_view(client, author, db):
    post = posts_service.create_post(
        db, title="Rendered", content="# Heading\n\nSome **bold** text", author_id=author.id, published=True
    )

    response = client.get("/blog/rendered")
    assert response.status_code == 200
    assert "<strong>bold</strong>" in response.text
    assert "1 view" in response.text

    db.expire_all()
    assert posts_service.get_post(db, post.id).views == 1


def test_draft_is_not_public(client, author, db):
    posts_service.create_post(db, title="Secret", content="x", author_id=author.id)
    assert client.get("/blog/secret").status_code == 404


def test_blog_search(client, author, db):
    posts_service.create_post(db, title="Python Tips", content="x", author_id=author.id, published=True)
    posts_service.create_post(db, title="Gardening", content="x", author_id=author.id, published=True)

    response = client.get("/blog?q=python")
    assert "Python Tips" in response.text
    assert "Gardening" not in response.text


def test_category_and_tag_pages(client, author, db):
    tech = categories_service.create_category(db, "Tech", "All things tech")
    tag = tags_service.create_tag(db, "Python")
    posts_service.create_post(
        db, title="Filed", content="x", author_id=author.id, published=True, categories=[tech.id], tags=[tag.id]
    )

    response = client.get("/blog/category/tech")
    assert response.status_code == 200
    assert "Filed" in response.text
    assert "All things tech" in response.text

    assert "Filed" in client.get("/blog/tag/python").text
    assert client.get("/blog/category/missing").status_code == 404


def test_feed_and_sitemap(client, author, db):
    posts_service.create_post(db, title="Feed Me", content="x", author_id=author.id, published=True)
    posts_service.create_post(db, title="Not Yet", content="x", author_id=author.id)

    feed = client.get("/blog/feed.xml")
    assert feed.headers["content-type"].startswith("application/rss+xml")
    assert "/blog/feed-me" in feed.text
    assert "/blog/not-yet" not in feed.text

    sitemap = client.get("/sitemap.xml")
    assert "/blog/feed-me" in sitemap.text
    assert "/blog/not-yet" not in sitemap.text


def test_robots_and_about(client):
    assert "Disallow: /admin/" in client.get("/robots.txt").text
    assert client.get("/about").status_code == 200


def test_security_headers(client):
    response = client.get("/about")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "default-src 'self'" in response.headers["Content-Security-Policy"]
