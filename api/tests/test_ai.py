"""Test the AI helpers against a scripted model."""

import json
from unittest.mock import patch

import pytest
from google.api_core import exceptions as google_exceptions

from blogmate.errors import AITimeout
from blogmate.services.gemini import GeminiModel


@pytest.fixture
def ai_post(client, u1, auth_headers):
    headers = auth_headers(u1)

    def _post(path, payload):
        return client.post(f"/ai/{path}", json=payload, headers=headers)

    return _post


def _blogs(n):
    return [{"title": f"t{i}", "content": f"c{i}", "tags": [f"tag{i}"]} for i in range(n)]


def test_ai_requires_auth(client):
    assert client.post("/ai/chat", json={"message": "hi"}).status_code == 401


def test_chat_passes_guard(ai_post, fake_model):
    fake_model.script("Yes.", "Start with an outline.")
    response = ai_post("chat", {"message": "How do I structure a post?"})
    assert response.status_code == 200
    assert response.json() == {"response": "Start with an outline."}
    # Guard prompt wraps the user text, the second call sends it as-is
    assert "How do I structure a post?" in fake_model.prompts[0]
    assert fake_model.prompts[1] == "How do I structure a post?"


def test_chat_off_topic(ai_post, fake_model):
    fake_model.script("no")
    response = ai_post("chat", {"message": "What's 2+2?"})
    assert response.status_code == 406
    assert len(fake_model.prompts) == 1


def test_chat_rejects_empty_message(ai_post):
    assert ai_post("chat", {"message": ""}).status_code == 400


def test_recommend_title_takes_first_line(ai_post, fake_model):
    fake_model.script("yes", '\n"Shipping Go"\nAlternative title')
    response = ai_post("recommendTitle", {"content": "Go in production", "tags": ["go"]})
    assert response.json() == {"title": "Shipping Go"}
    assert "Tags: go" in fake_model.prompts[1]


def test_recommend_content(ai_post, fake_model):
    fake_model.script("yes", "Body text")
    response = ai_post("recommendContent", {"title": "Go", "tags": ["go", "systems"]})
    assert response.json() == {"content": "Body text"}
    assert "go, systems" in fake_model.prompts[1]


def test_recommend_tags_are_cleaned(ai_post, fake_model):
    fake_model.script("yes", "#go, systems\nGo , , systems")
    response = ai_post("recommendTags", {"title": "Go", "content": "body"})
    assert response.json() == {"tags": ["go", "systems", "Go"]}


def test_recommend_trims_to_five(ai_post, fake_model):
    fake_model.script("```json\n" + json.dumps(_blogs(6)) + "\n```")
    response = ai_post("recommend", {"title": "Go", "content": "body", "tags": ["go"]})
    assert response.status_code == 200
    assert [b["title"] for b in response.json()] == ["t0", "t1", "t2", "t3", "t4"]


def test_recommend_with_too_few_results(ai_post, fake_model):
    fake_model.script(json.dumps(_blogs(4)))
    response = ai_post("recommend", {"title": "Go", "content": "body"})
    assert response.status_code == 406
    assert "got 4" in response.json()["error"]


@pytest.mark.parametrize(
    "answer", ["not json at all", json.dumps({"title": "t"}), json.dumps([{"title": "t"}] * 5)]
)
def test_recommend_with_unparseable_answer(ai_post, fake_model, answer):
    fake_model.script(answer)
    response = ai_post("recommend", {"title": "Go", "content": "body"})
    assert response.status_code == 406


def test_summarize_and_refine(ai_post, fake_model):
    fake_model.script("A summary", "Refined text")
    assert ai_post("summarize", {"title": "Go", "content": "body"}).json() == {"summary": "A summary"}
    assert "Go\n\nbody" in fake_model.prompts[0]
    assert ai_post("refine", {"content": "raw text"}).json() == {"content": "Refined text"}


def test_summarize_sends_tags(ai_post, fake_model):
    fake_model.script("A summary")
    ai_post("summarize", {"title": "Go", "content": "body", "tags": ["go", "systems"]})
    assert "Go\n\nbody\n\nTags: go, systems" in fake_model.prompts[0]


def test_validate(ai_post, fake_model):
    fake_model.script("Yes", "No, it contains spam links.")
    assert ai_post("validate", {"content": "fine"}).json() == {"valid": True, "feedback": None}
    assert ai_post("validate", {"content": "buy now"}).json() == {
        "valid": False,
        "feedback": "No, it contains spam links.",
    }


@pytest.mark.parametrize("failure", [AITimeout(), RuntimeError("boom"), ""])
def test_model_failures_are_internal_errors(ai_post, fake_model, failure):
    fake_model.script(failure)
    response = ai_post("summarize", {"content": "body"})
    assert response.status_code == 500
    assert "error" in response.json()


def test_gemini_deadline_becomes_ai_timeout():
    with patch("blogmate.services.gemini.genai.GenerativeModel") as model_cls:
        generate = model_cls.return_value.generate_content
        generate.side_effect = google_exceptions.DeadlineExceeded("too slow")
        model = GeminiModel(None, "gemini-test", 2.5)
        with pytest.raises(AITimeout):
            model.generate("hello")
    generate.assert_called_once_with("hello", request_options={"timeout": 2.5})


def test_gemini_returns_response_text():
    with patch("blogmate.services.gemini.genai.GenerativeModel") as model_cls:
        model_cls.return_value.generate_content.return_value.text = "hi there"
        assert GeminiModel(None, "gemini-test", 2.5).generate("hello") == "hi there"
    model_cls.assert_called_once_with("gemini-test")
