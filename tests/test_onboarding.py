import pytest

from db import SessionLocal, User, profile_from_user
from nutrition import calculate_macro_targets
from onboarding import (
    next_question,
    normalize_activity,
    normalize_gender,
    parse_float_safe,
    parse_int_safe,
    reset_profile,
    save_answer,
    start_onboarding,
)

ANSWERS = [
    ("name", "Ana Lopez"),
    ("current_weight", "80 kg"),
    ("goal_weight", "70,5"),
    ("height_cm", "172"),
    ("age", "34"),
    ("gender", "Female"),
    ("activity_level", "moderately_active"),
    ("dietary_preference", "High Protein"),
]


def _user(uid):
    with SessionLocal() as s:
        return s.query(User).filter(User.uid == uid).first()


def test_parse_helpers():
    assert parse_int_safe("35 años") == 35
    assert parse_int_safe("abc") is None
    assert parse_int_safe("120", max_v=100) is None
    assert parse_float_safe("72,5kg") == 72.5
    assert parse_float_safe("", min_v=1) is None
    assert parse_float_safe("10", min_v=20) is None


def test_normalizers():
    assert normalize_gender("F") == "female"
    assert normalize_gender("man") == "male"
    assert normalize_gender("prefer not to say") == "other"
    assert normalize_activity("Very Active") == "very active"
    assert normalize_activity("moderate") == "moderately active"
    assert normalize_activity("no idea") == "lightly active"


def test_start_onboarding_is_idempotent():
    q = start_onboarding("u1")
    assert q == {"step": 1, "field": "name", "question": "What should we call you?"}
    assert start_onboarding("u1") == q
    with SessionLocal() as s:
        assert s.query(User).filter(User.uid == "u1").count() == 1


def test_full_flow_completes_profile():
    start_onboarding("u1")
    for i, (field, value) in enumerate(ANSWERS, start=1):
        assert next_question("u1")["field"] == field
        q = save_answer("u1", field, value)
        if i < len(ANSWERS):
            assert q["step"] == i + 1
    assert q is None
    assert next_question("u1") is None

    u = _user("u1")
    assert u.onboarding_step == 0
    assert u.goal_weight == 70.5
    assert u.gender == "female"
    assert u.activity_level == "moderately active"
    assert u.dietary_preference == "high_protein"

    profile = profile_from_user(u)
    targets = calculate_macro_targets(profile)
    assert targets.calorie_goal == profile.estimated_daily_calories
    assert targets.recommendation.startswith("High Protein focus:")


@pytest.mark.parametrize("field,value", [
    ("current_weight", "heavy"),
    ("height_cm", "20"),
    ("age", "9"),
    ("name", "A"),
    ("calorie_goal", "100"),
    ("favourite_food", "pizza"),
])
def test_invalid_answers_raise(field, value):
    start_onboarding("u1")
    with pytest.raises(ValueError):
        save_answer("u1", field, value)


def test_unknown_user_raises_lookup_error():
    with pytest.raises(LookupError):
        save_answer("ghost", "name", "Ana")
    with pytest.raises(LookupError):
        next_question("ghost")


def test_calorie_goal_override_and_clear():
    start_onboarding("u1")
    save_answer("u1", "calorie_goal", "1800")
    assert _user("u1").calorie_goal == 1800
    save_answer("u1", "calorie_goal", "")
    assert _user("u1").calorie_goal is None


def test_reset_profile():
    start_onboarding("u1")
    for field, value in ANSWERS:
        save_answer("u1", field, value)
    q = reset_profile("u1")
    assert q["step"] == 1
    u = _user("u1")
    assert u.current_weight is None
    assert u.onboarding_step == 1
    assert u.start_weight is None


def test_start_weight_kept_after_weight_update():
    start_onboarding("u1")
    for field, value in ANSWERS:
        save_answer("u1", field, value)
    save_answer("u1", "current_weight", "75")
    u = _user("u1")
    assert u.start_weight == 80
    assert u.current_weight == 75
    assert round(profile_from_user(u).progress_percentage, 2) == 0.53
