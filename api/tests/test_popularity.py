"""Test popularity ranking."""


def test_popular_ordering(client, u1, u2, u3, auth_headers, create_blog):
    quiet = create_blog(u1, title="quiet")
    commented = create_blog(u1, title="commented")
    disliked = create_blog(u1, title="disliked")
    viewed = create_blog(u1, title="viewed")
    liked = create_blog(u1, title="liked")

    def act(blog, user, action):
        response = client.post(
            f"/blogs/{blog['blog_id']}/interact/{action}", headers=auth_headers(user)
        )
        assert response.status_code == 200

    act(liked, u2, "like")
    act(viewed, u2, "view")
    act(viewed, u3, "view")
    act(disliked, u2, "dislike")
    client.post(
        f"/blogs/{commented['blog_id']}/comments", json={"content": "hi"}, headers=auth_headers(u1)
    )

    ranked = [b["title"] for b in client.get("/blogs/popular").json()]
    # likes desc, then views desc, then comments desc, then dislikes asc
    assert ranked == ["liked", "viewed", "disliked", "commented", "quiet"]


def test_ties_break_by_newest_first(client, u1, create_blog):
    older = create_blog(u1, title="older")
    newer = create_blog(u1, title="newer")
    ranked = [b["blog_id"] for b in client.get("/blogs/popular").json()]
    assert ranked == [newer["blog_id"], older["blog_id"]]


def test_fewer_dislikes_rank_higher(client, u1, u2, u3, auth_headers, create_blog):
    one = create_blog(u1, title="one dislike")
    two = create_blog(u1, title="two dislikes")
    client.post(f"/blogs/{one['blog_id']}/interact/dislike", headers=auth_headers(u2))
    client.post(f"/blogs/{one['blog_id']}/interact/view", headers=auth_headers(u3))
    client.post(f"/blogs/{two['blog_id']}/interact/dislike", headers=auth_headers(u2))
    client.post(f"/blogs/{two['blog_id']}/interact/dislike", headers=auth_headers(u3))

    ranked = [b["title"] for b in client.get("/blogs/popular").json()]
    assert ranked == ["one dislike", "two dislikes"]


def test_popular_is_empty_without_blogs(client):
    assert client.get("/blogs/popular").json() == []
