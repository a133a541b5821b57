"""Test comments and replies: scoping, counters and cascade delete."""

from unittest.mock import patch

import pytest

from blogmate import models
from blogmate.errors import NotFound
from blogmate.services import blogs as blog_service
from blogmate.services import comments as comment_service
from blogmate.services import replies as reply_service


@pytest.fixture
def thread(client, u1, u2, auth_headers, create_blog):
    """A blog by u1 with one comment by u2 and one reply by u1."""
    blog = create_blog(u1)
    base = f"/blogs/{blog['blog_id']}/comments"
    comment = client.post(base, json={"content": "nice"}, headers=auth_headers(u2)).json()
    reply = client.post(
        f"{base}/{comment['comment_id']}/replies",
        json={"content": "thanks"},
        headers=auth_headers(u1),
    ).json()
    return blog, comment, reply


def test_comment_create_stamps_author_and_counts(client, thread, u1, u2, auth_headers):
    blog, comment, reply = thread
    assert comment["author_id"] == u2.public_id
    assert comment["blog_id"] == blog["blog_id"]
    assert reply["comment_id"] == comment["comment_id"]
    assert reply["blog_id"] == blog["blog_id"]

    assert client.get(f"/blogs/{blog['blog_id']}").json()["comment_count"] == 1
    fetched = client.get(
        f"/blogs/{blog['blog_id']}/comments/{comment['comment_id']}", headers=auth_headers(u1)
    ).json()
    assert fetched["reply_count"] == 1


def test_list_comments_requires_auth_and_is_newest_first(client, u1, auth_headers, create_blog):
    blog = create_blog(u1)
    base = f"/blogs/{blog['blog_id']}/comments"
    first = client.post(base, json={"content": "1"}, headers=auth_headers(u1)).json()
    second = client.post(base, json={"content": "2"}, headers=auth_headers(u1)).json()

    assert client.get(base).status_code == 401
    listed = client.get(base, headers=auth_headers(u1)).json()
    assert [c["comment_id"] for c in listed] == [second["comment_id"], first["comment_id"]]


def test_comment_on_missing_blog(client, u1, auth_headers, create_blog):
    blog = create_blog(u1)
    client.delete(f"/blogs/{blog['blog_id']}", headers=auth_headers(u1))
    response = client.post(
        f"/blogs/{blog['blog_id']}/comments", json={"content": "x"}, headers=auth_headers(u1)
    )
    assert response.status_code == 404


def test_comment_of_another_blog_is_scope_mismatch(client, thread, u1, auth_headers, create_blog):
    _, comment, reply = thread
    other = create_blog(u1, title="other")
    response = client.get(
        f"/blogs/{other['blog_id']}/comments/{comment['comment_id']}", headers=auth_headers(u1)
    )
    assert response.status_code == 404
    assert response.json() == {"error": "comment does not belong to this blog"}

    response = client.get(
        f"/blogs/{other['blog_id']}/comments/{comment['comment_id']}/replies/{reply['reply_id']}",
        headers=auth_headers(u1),
    )
    assert response.status_code == 404


def test_reply_of_another_comment_is_scope_mismatch(client, thread, u1, auth_headers):
    blog, _, reply = thread
    base = f"/blogs/{blog['blog_id']}/comments"
    other = client.post(base, json={"content": "other"}, headers=auth_headers(u1)).json()
    response = client.get(
        f"{base}/{other['comment_id']}/replies/{reply['reply_id']}", headers=auth_headers(u1)
    )
    assert response.status_code == 404
    assert response.json() == {"error": "reply does not belong to this comment"}


def test_update_comment_owner_only(client, thread, u1, u2, auth_headers):
    blog, comment, _ = thread
    url = f"/blogs/{blog['blog_id']}/comments/{comment['comment_id']}"

    # The blog author does not own the comment
    assert client.patch(url, json={"content": "x"}, headers=auth_headers(u1)).status_code == 401

    response = client.patch(url, json={"content": "edited"}, headers=auth_headers(u2))
    assert response.status_code == 200
    assert response.json()["content"] == "edited"
    assert response.json()["created_at"] == comment["created_at"]


def test_delete_reply_decrements_counter(client, thread, u1, u2, auth_headers):
    blog, comment, reply = thread
    base = f"/blogs/{blog['blog_id']}/comments/{comment['comment_id']}"

    assert client.delete(f"{base}/replies/{reply['reply_id']}", headers=auth_headers(u2)).status_code == 401
    response = client.delete(f"{base}/replies/{reply['reply_id']}", headers=auth_headers(u1))
    assert response.json() == {"message": "Reply deleted"}

    assert client.get(base, headers=auth_headers(u1)).json()["reply_count"] == 0
    assert client.get(f"{base}/replies", headers=auth_headers(u1)).json() == []
    assert client.delete(f"{base}/replies/{reply['reply_id']}", headers=auth_headers(u1)).status_code == 404


def test_delete_comment_removes_replies(client, thread, u2, auth_headers, db):
    blog, comment, reply = thread
    url = f"/blogs/{blog['blog_id']}/comments/{comment['comment_id']}"

    client.post(f"{url}/interact/like", headers=auth_headers(u2))
    response = client.delete(url, headers=auth_headers(u2))
    assert response.status_code == 200
    assert response.json() == {"message": "Comment deleted"}

    assert client.get(url, headers=auth_headers(u2)).status_code == 404
    assert client.get(f"/blogs/{blog['blog_id']}").json()["comment_count"] == 0
    assert db.query(models.Reply).count() == 0
    assert db.query(models.Interaction).filter_by(entity_kind="comment").count() == 0


def test_delete_blog_cascades(client, thread, u1, u2, auth_headers, db):
    blog, comment, reply = thread
    blog_url = f"/blogs/{blog['blog_id']}"
    comment_url = f"{blog_url}/comments/{comment['comment_id']}"
    client.post(f"{blog_url}/interact/like", headers=auth_headers(u2))
    client.post(f"{comment_url}/replies/{reply['reply_id']}/interact/view", headers=auth_headers(u2))

    assert client.delete(blog_url, headers=auth_headers(u1)).json() == {"message": "Blog deleted"}

    assert client.get(blog_url).status_code == 404
    assert client.delete(blog_url, headers=auth_headers(u1)).status_code == 404
    assert db.query(models.Comment).count() == 0
    assert db.query(models.Reply).count() == 0
    assert db.query(models.BlogTag).count() == 0
    assert db.query(models.Interaction).count() == 0


def test_comment_on_blog_deleted_mid_request(app, db, u1, u2, create_blog):
    blog_id = create_blog(u1)["blog_id"]
    owner_id = u1.id
    real_get_blog = comment_service.get_blog

    def get_then_delete(session, wanted, **kwargs):
        blog = real_get_blog(session, wanted, **kwargs)
        other = app.state.session_factory()
        try:
            blog_service.delete_blog(other, wanted, other.get(models.User, owner_id))
        finally:
            other.close()
        return blog

    with patch("blogmate.services.comments.get_blog", get_then_delete):
        with pytest.raises(NotFound):
            comment_service.create_comment(db, blog_id, u2, "too late")

    assert db.query(models.Comment).count() == 0
    assert db.query(models.Blog).count() == 0


def test_reply_on_comment_deleted_mid_request(app, db, thread, u2):
    blog, comment, _ = thread
    commenter_id = u2.id
    real_get_comment = reply_service.get_comment

    def get_then_delete(session, blog_id, comment_id, **kwargs):
        found = real_get_comment(session, blog_id, comment_id, **kwargs)
        other = app.state.session_factory()
        try:
            comment_service.delete_comment(
                other, blog_id, comment_id, other.get(models.User, commenter_id)
            )
        finally:
            other.close()
        return found

    with patch("blogmate.services.replies.get_comment", get_then_delete):
        with pytest.raises(NotFound):
            reply_service.create_reply(db, blog["blog_id"], comment["comment_id"], u2, "late")

    assert db.query(models.Comment).count() == 0
    assert db.query(models.Reply).count() == 0
    assert db.query(models.Blog).one().comment_count == 0
