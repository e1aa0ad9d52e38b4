from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import coach
from main import app

client = TestClient(app)

PROFILE = [
    ("name", "Ana Lopez"),
    ("current_weight", "80"),
    ("goal_weight", "70"),
    ("height_cm", "172"),
    ("age", "34"),
    ("gender", "female"),
    ("activity_level", "lightly active"),
    ("dietary_preference", "balanced"),
]


def _onboard(uid="u1", calorie_goal=None):
    client.post("/users", json={"uid": uid})
    for field, value in PROFILE:
        r = client.put(f"/users/{uid}/profile", json={"field": field, "value": value})
        assert r.status_code == 200
    if calorie_goal is not None:
        client.put(f"/users/{uid}/profile", json={"field": "calorie_goal", "value": str(calorie_goal)})


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_preferences_catalogue():
    r = client.get("/preferences")
    assert r.status_code == 200
    ids = [p["id"] for p in r.json()]
    assert ids[0] == "balanced"
    assert "zone_diet" in ids


def test_macros_without_profile_uses_defaults():
    r = client.post("/macros")
    assert r.status_code == 200
    body = r.json()
    assert body["calorieGoal"] == 2000
    assert body["proteinGrams"] == 125
    assert body["recommendation"].startswith("Balanced (Default) focus:")


def test_macros_with_profile_body():
    r = client.post("/macros", json={"current_weight": 80, "goal_weight": 70, "calorie_goal": 2000})
    body = r.json()
    assert (body["proteinGrams"], body["carbsGrams"], body["fatGrams"]) == (150, 225, 56)


def test_onboarding_and_user_macros():
    r = client.post("/users", json={"uid": "u1"})
    assert r.json()["next"]["field"] == "name"

    _onboard("u1", calorie_goal=2000)
    profile = client.get("/users/u1/profile").json()
    assert profile["next"] is None
    assert profile["profile"]["calorieGoal"] == 2000
    assert profile["profile"]["bmiCategory"] == "Overweight"

    macros = client.get("/users/u1/macros").json()
    assert macros["calorieGoal"] == 2000
    assert (macros["proteinPercent"], macros["carbsPercent"], macros["fatPercent"]) == (30, 45, 25)


def test_invalid_answer_is_400_and_unknown_user_404():
    client.post("/users", json={"uid": "u1"})
    r = client.put("/users/u1/profile", json={"field": "age", "value": "200"})
    assert r.status_code == 400
    assert client.put("/users/ghost/profile", json={"field": "age", "value": "30"}).status_code == 404
    assert client.get("/users/ghost/macros").status_code == 404


def test_reset_profile_endpoint():
    _onboard("u1")
    r = client.delete("/users/u1/profile")
    assert r.json()["next"]["step"] == 1
    assert client.delete("/users/ghost/profile").status_code == 404


def test_meals_and_adherence():
    _onboard("u1", calorie_goal=2000)
    day = "2026-01-15"
    for meal in ({"name": "Breakfast", "calories": 600, "protein": 50, "carbs": 100, "fat": 20, "day": day},
                 {"name": "Dinner", "calories": 900, "protein": 100, "carbs": 125, "fat": 36, "day": day}):
        assert client.post("/users/u1/meals", json=meal).status_code == 200

    body = client.get(f"/users/u1/adherence?day={day}").json()
    a = body["adherence"]
    assert a["actualProtein"] == 150
    assert (a["proteinAdherence"], a["carbsAdherence"], a["fatAdherence"]) == (100, 100, 100)
    assert a["goalTrend"] == "lose"
    assert a["offTarget"] is False
    assert body["suggestions"][0].startswith("High Protein diet")

    empty = client.get("/users/u1/adherence?day=2026-01-16").json()
    assert empty["adherence"]["offMacros"] == ["protein", "carbs", "fat"]


def test_coach_endpoint(monkeypatch):
    _onboard("u1", calorie_goal=2000)
    reply = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="Keep going, Ana!"))])

    class FakeOpenAI:
        def __init__(self, api_key=None):
            self.chat = SimpleNamespace(completions=SimpleNamespace(create=lambda **kw: reply))

    monkeypatch.setattr(coach.openai, "OpenAI", FakeOpenAI)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    r = client.post("/users/u1/coach")
    assert r.status_code == 200
    assert r.json() == {"brief": "Keep going, Ana!", "source": "openai"}


def test_coach_endpoint_without_key(monkeypatch):
    _onboard("u1")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert client.post("/users/u1/coach").status_code == 503


@pytest.mark.parametrize("body", [
    {"current_weight": 1e308, "goal_weight": 1e308},
    {"current_weight": -5},
    {"height_cm": 1000},
    {"calorie_goal": 50000},
])
def test_macros_rejects_out_of_range_profile(body):
    assert client.post("/macros", json=body).status_code == 422


def test_profile_view_reports_progress():
    _onboard("u1", calorie_goal=2000)
    client.put("/users/u1/profile", json={"field": "current_weight", "value": "75"})
    profile = client.get("/users/u1/profile").json()["profile"]
    assert profile["startWeight"] == 80
    assert profile["progressPercentage"] == 0.5
