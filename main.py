# main.py

import os
import logging
from datetime import date
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from db import init_db, SessionLocal, User, MealLog, profile_from_user, meal_from_log
from dietary import DietaryPreference
from nutrition import UserProfile, calculate_macro_targets, calculate_adherence, suggest_diet_changes
from onboarding import start_onboarding, next_question, save_answer, reset_profile
from coach import generate_coach_brief

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

app = FastAPI(title="MacroCoach")
init_db()


# ---------- ESQUEMAS ----------
class ProfileIn(BaseModel):
    name: str = ""
    # mismos rangos que UserProfile.create
    current_weight: float = Field(0.0, ge=0, lt=500)
    goal_weight: float = Field(0.0, ge=0, lt=500)
    start_weight: float = Field(0.0, ge=0, lt=500)
    height_cm: float = Field(0.0, ge=0, lt=300)
    age: int = Field(30, ge=13, le=100)
    gender: str = ""
    activity_level: str = ""
    dietary_preference: str = "balanced"
    calorie_goal: Optional[int] = Field(None, ge=0, le=10000)


class UserIn(BaseModel):
    uid: str


class AnswerIn(BaseModel):
    field: str
    value: Optional[str] = None


class MealIn(BaseModel):
    name: str = ""
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    day: Optional[date] = None


# ---------- helpers ----------
def _load_profile(uid: str) -> UserProfile:
    with SessionLocal() as s:
        u = s.query(User).filter(User.uid == str(uid)).first()
        if not u:
            raise HTTPException(status_code=404, detail=f"User {uid} not found")
        return profile_from_user(u)


def _load_meals(uid: str, day: date) -> list:
    with SessionLocal() as s:
        logs = s.query(MealLog).filter(MealLog.uid == str(uid), MealLog.day == day).all()
        return [meal_from_log(m) for m in logs]


def _profile_view(p: UserProfile) -> dict:
    return {
        "uid": p.uid,
        "name": p.name,
        "currentWeight": p.current_weight,
        "goalWeight": p.goal_weight,
        "heightCm": p.height_cm,
        "age": p.age,
        "gender": p.gender,
        "activityLevel": p.activity_level,
        "dietaryPreference": p.dietary_preference_enum.id,
        "calorieGoal": p.calorie_goal,
        "estimatedDailyCalories": p.estimated_daily_calories,
        "bmi": round(p.bmi, 1),
        "bmiCategory": p.bmi_category,
        "weightDifference": round(p.weight_difference, 1),
        "hasReachedGoal": p.has_reached_goal,
        "startWeight": p.start_weight,
        "progressPercentage": round(p.progress_percentage, 2),
    }


# ---------- RUTAS ----------
@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/preferences")
def preferences():
    return [p.as_dict() for p in DietaryPreference.all()]


@app.post("/macros")
def macros(payload: Optional[ProfileIn] = None):
    profile = UserProfile(**payload.model_dump()) if payload is not None else None
    return calculate_macro_targets(profile).as_dict()


@app.post("/users")
def create_user(payload: UserIn):
    question = start_onboarding(payload.uid)
    return {"uid": payload.uid, "next": question}


@app.put("/users/{uid}/profile")
def update_profile(uid: str, payload: AnswerIn):
    try:
        question = save_answer(uid, payload.field, payload.value)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except LookupError as le:
        raise HTTPException(status_code=404, detail=str(le))
    return {"uid": uid, "next": question}


@app.delete("/users/{uid}/profile")
def delete_profile(uid: str):
    try:
        question = reset_profile(uid)
    except LookupError as le:
        raise HTTPException(status_code=404, detail=str(le))
    return {"uid": uid, "next": question}


@app.get("/users/{uid}/profile")
def get_profile(uid: str):
    profile = _load_profile(uid)
    return {"profile": _profile_view(profile), "next": next_question(uid)}


@app.get("/users/{uid}/macros")
def user_macros(uid: str):
    # se recalcula en cada lectura, nunca se guarda
    return calculate_macro_targets(_load_profile(uid)).as_dict()


@app.post("/users/{uid}/meals")
def log_meal(uid: str, payload: MealIn):
    _load_profile(uid)
    with SessionLocal() as s:
        log = MealLog(
            uid=str(uid),
            day=payload.day or date.today(),
            name=payload.name,
            calories=payload.calories,
            protein=payload.protein,
            carbs=payload.carbs,
            fat=payload.fat,
        )
        s.add(log)
        s.commit()
        log_id = log.id
    logger.info(f"[Meals] Comida registrada para {uid}: {payload.name} ({payload.calories} kcal)")
    return {"id": log_id}


@app.get("/users/{uid}/adherence")
def adherence(uid: str, day: Optional[date] = None):
    profile = _load_profile(uid)
    targets = calculate_macro_targets(profile)
    result = calculate_adherence(profile, targets, _load_meals(uid, day or date.today()))
    return {
        "targets": targets.as_dict(),
        "adherence": result.as_dict(),
        "suggestions": suggest_diet_changes(profile, result),
    }


@app.post("/users/{uid}/coach")
def coach_brief(uid: str, day: Optional[date] = None):
    profile = _load_profile(uid)
    targets = calculate_macro_targets(profile)
    result = calculate_adherence(profile, targets, _load_meals(uid, day or date.today()))
    try:
        return generate_coach_brief(profile, targets, result, suggest_diet_changes(profile, result))
    except RuntimeError as re:
        raise HTTPException(status_code=503, detail=str(re))
