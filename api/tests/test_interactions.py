"""Test the like / dislike / view transitions on blogs, comments and replies."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from blogmate import models
from blogmate.errors import InvalidAction, InvalidUser
from blogmate.ids import EntityKind, parse_id
from blogmate.services.interactions import (
    MSG_ADDED_DISLIKE,
    MSG_ADDED_LIKE,
    MSG_REMOVED_DISLIKE,
    MSG_REMOVED_LIKE,
    Action,
    annotate_interactions,
    interact,
)


@pytest.fixture
def targets(client, u1, auth_headers, create_blog):
    """Interaction URL and read URL for one entity of each kind."""
    blog = create_blog(u1)
    blog_url = f"/blogs/{blog['blog_id']}"
    comment = client.post(
        f"{blog_url}/comments", json={"content": "c"}, headers=auth_headers(u1)
    ).json()
    comment_url = f"{blog_url}/comments/{comment['comment_id']}"
    reply = client.post(
        f"{comment_url}/replies", json={"content": "r"}, headers=auth_headers(u1)
    ).json()
    reply_url = f"{comment_url}/replies/{reply['reply_id']}"
    return {"blog": blog_url, "comment": comment_url, "reply": reply_url}


@pytest.mark.parametrize("kind", ["blog", "comment", "reply"])
def test_transition_table(client, targets, kind, u2, auth_headers):
    url = targets[kind]
    headers = auth_headers(u2)

    def act(action):
        response = client.post(f"{url}/interact/{action}", headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["message"]

    def state():
        entity = client.get(url, headers=headers).json()
        return entity["likes"], entity["dislikes"], entity["viewers"]

    me = u2.public_id

    assert act("like") == "added your like"
    assert state() == ([me], [], [me])
    assert act("like") == "removed your like"
    assert state() == ([], [], [me])

    assert act("dislike") == "added your dislike"
    assert state() == ([], [me], [me])
    assert act("like") == "added your like"
    assert state() == ([me], [], [me])
    assert act("dislike") == "added your dislike"
    assert state() == ([], [me], [me])
    assert act("dislike") == "removed your dislike"
    assert state() == ([], [], [me])

    assert act("view") == "already viewed"


def test_view_adds_viewer_once(client, targets, u2, u3, auth_headers):
    url = targets["blog"]
    assert client.post(f"{url}/interact/view", headers=auth_headers(u2)).json()["message"] == "added view"
    assert client.post(f"{url}/interact/view", headers=auth_headers(u2)).json()["message"] == "already viewed"
    assert client.post(f"{url}/interact/view", headers=auth_headers(u3)).json()["message"] == "added view"

    blog = client.get(url).json()
    assert sorted(blog["viewers"]) == sorted([u2.public_id, u3.public_id])
    assert blog["likes"] == [] and blog["dislikes"] == []


def test_action_names_are_case_insensitive(client, targets, u2, auth_headers):
    response = client.post(f"{targets['blog']}/interact/LIKE", headers=auth_headers(u2))
    assert response.json() == {"message": "added your like"}


def test_unknown_action_is_rejected(client, targets, u2, auth_headers):
    response = client.post(f"{targets['blog']}/interact/love", headers=auth_headers(u2))
    assert response.status_code == 400
    assert response.json() == {
        "error": "unknown interaction type: love, must be one of like, dislike, view"
    }


def test_interaction_requires_auth(client, targets):
    assert client.post(f"{targets['blog']}/interact/like").status_code == 401


def test_interaction_on_missing_entity(client, targets, u1, u2, auth_headers):
    client.delete(targets["reply"], headers=auth_headers(u1))
    response = client.post(f"{targets['reply']}/interact/like", headers=auth_headers(u2))
    assert response.status_code == 404


def test_engine_rejects_missing_user_and_unknown_action(db, u1, create_blog):
    blog = create_blog(u1)
    blog_pk = parse_id(EntityKind.BLOG, blog["blog_id"])
    with pytest.raises(InvalidUser):
        interact(db, EntityKind.BLOG, blog_pk, None, Action.LIKE)
    with pytest.raises(InvalidAction):
        interact(db, EntityKind.BLOG, blog_pk, u1, "poke")


def test_annotate_batches_many_entities(db, u1, u2, create_blog):
    first, second = create_blog(u1, title="1"), create_blog(u1, title="2")
    blogs = db.query(models.Blog).order_by(models.Blog.id).all()
    interact(db, EntityKind.BLOG, blogs[0].id, u2, Action.LIKE)
    interact(db, EntityKind.BLOG, blogs[1].id, u1, Action.VIEW)

    annotate_interactions(db, EntityKind.BLOG, blogs)
    assert blogs[0].public_id == first["blog_id"]
    assert (blogs[0].likes, blogs[0].viewers) == ([u2.public_id], [u2.public_id])
    assert (blogs[1].likes, blogs[1].viewers) == ([], [u1.public_id])
    assert second["blog_id"] == blogs[1].public_id


def test_concurrent_votes_keep_one_row(app, db, u1, u2, create_blog):
    blog_pk = parse_id(EntityKind.BLOG, create_blog(u1)["blog_id"])
    voter_id = u2.id

    def vote(i):
        session = app.state.session_factory()
        try:
            voter = session.get(models.User, voter_id)
            action = Action.LIKE if i % 2 else Action.DISLIKE
            return interact(session, EntityKind.BLOG, blog_pk, voter, action)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        messages = list(pool.map(vote, range(40)))

    votes = {MSG_ADDED_LIKE, MSG_REMOVED_LIKE, MSG_ADDED_DISLIKE, MSG_REMOVED_DISLIKE}
    assert set(messages) <= votes
    rows = (
        db.query(models.Interaction)
        .filter_by(entity_kind=EntityKind.BLOG.value, entity_id=blog_pk, user_id=voter_id)
        .all()
    )
    assert len(rows) == 1

    (blog,) = annotate_interactions(db, EntityKind.BLOG, [db.get(models.Blog, blog_pk)])
    assert not set(blog.likes) & set(blog.dislikes)
    assert blog.viewers == [u2.public_id]
