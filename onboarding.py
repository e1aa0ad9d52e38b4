# onboarding.py

import logging
import re
from typing import Optional

from db import SessionLocal, User
from dietary import DietaryPreference

logger = logging.getLogger(__name__)

# ---------- utils de saneo/parse ----------
NUM_ONLY_RE = re.compile(r"[^\d.,+-]")
ACTIVITY_KEYWORDS = [
    ("sedentar", "sedentary"),
    ("light", "lightly active"),
    ("moderat", "moderately active"),
    ("extreme", "extremely active"),
    ("very", "very active"),
]

def parse_int_safe(value: str, min_v: Optional[int] = None, max_v: Optional[int] = None) -> Optional[int]:
    if value is None:
        return None
    cleaned = NUM_ONLY_RE.sub("", str(value)).strip()
    cleaned = cleaned.replace(",", ".")
    try:
        i = int(round(float(cleaned)))
    except ValueError:
        return None
    if min_v is not None and i < min_v:
        return None
    if max_v is not None and i > max_v:
        return None
    return i

def parse_float_safe(value: str, min_v: Optional[float] = None, max_v: Optional[float] = None) -> Optional[float]:
    if value is None:
        return None
    cleaned = NUM_ONLY_RE.sub("", str(value)).strip()
    cleaned = cleaned.replace(",", ".")
    try:
        num = float(cleaned)
    except ValueError:
        return None
    if min_v is not None and num < min_v:
        return None
    if max_v is not None and num > max_v:
        return None
    return num

def normalize_text(s: str) -> str:
    return (s or "").strip()

def normalize_gender(value: str) -> str:
    val = value.lower()
    if val.startswith("f") or val.startswith("w"):
        return "female"
    if val.startswith("m"):
        return "male"
    return "other"

def normalize_activity(value: str) -> str:
    val = value.lower().replace("_", " ")
    for keyword, level in ACTIVITY_KEYWORDS:
        if keyword in val:
            return level
    return "lightly active"


# ---------- pasos ----------
ONBOARDING_FIELDS = [
    ("name", "What should we call you?"),
    ("current_weight", "What is your current weight in kg? (e.g. 72.5)"),
    ("goal_weight", "What is your goal weight in kg? (e.g. 68)"),
    ("height_cm", "How tall are you in cm? (e.g. 175)"),
    ("age", "How old are you? (number only, e.g. 35)"),
    ("gender", "What is your gender? (male / female / other)"),
    ("activity_level", "How active are you? (sedentary, lightly active, moderately active, very active, extremely active)"),
    ("dietary_preference", "Which eating style do you follow? (e.g. balanced, high_protein, ketogenic, vegan)"),
]
FIELD_NAMES = [f for f, _ in ONBOARDING_FIELDS]
EDITABLE_FIELDS = FIELD_NAMES + ["calorie_goal"]


def _first_missing_step(u: User) -> int:
    for i, (field, _) in enumerate(ONBOARDING_FIELDS, start=1):
        if getattr(u, field) in (None, ""):
            return i
    return 0

def _get_user(s, uid: str) -> User:
    u = s.query(User).filter(User.uid == str(uid)).first()
    if not u:
        raise LookupError(f"User {uid} not found")
    return u

def _question(step: int) -> Optional[dict]:
    if not step:
        return None
    field, text = ONBOARDING_FIELDS[step - 1]
    return {"step": step, "field": field, "question": text}


# ---------- flujo público ----------
def start_onboarding(uid: str) -> Optional[dict]:
    """Crea el usuario si no existe y devuelve la siguiente pregunta pendiente."""
    with SessionLocal() as s:
        u = s.query(User).filter(User.uid == str(uid)).first()
        if not u:
            u = User(uid=str(uid), onboarding_step=1)
            s.add(u)
            s.commit()
            logger.info(f"[Onboarding] Nuevo usuario {uid}")
        return _question(u.onboarding_step or 0)

def next_question(uid: str) -> Optional[dict]:
    with SessionLocal() as s:
        u = _get_user(s, uid)
        return _question(u.onboarding_step or 0)

def reset_profile(uid: str) -> Optional[dict]:
    with SessionLocal() as s:
        u = _get_user(s, uid)
        for field in EDITABLE_FIELDS:
            setattr(u, field, None)
        u.start_weight = None
        u.onboarding_step = 1
        s.commit()
    logger.info(f"[Onboarding] Perfil reiniciado para {uid}")
    return _question(1)

def save_answer(uid: str, field: str, value) -> Optional[dict]:
    """Valida y guarda un campo del perfil; devuelve la siguiente pregunta (o None si está completo)."""
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown profile field: {field}")
    value = normalize_text(str(value) if value is not None else "")

    # Validaciones según campo
    if field == "name":
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters long.")
        parsed = value
    elif field in ("current_weight", "goal_weight"):
        parsed = parse_float_safe(value, min_v=20, max_v=400)
        if parsed is None:
            raise ValueError("Invalid weight. Use a number in kg (e.g. 72.5).")
    elif field == "height_cm":
        parsed = parse_float_safe(value, min_v=80, max_v=250)
        if parsed is None:
            raise ValueError("Invalid height. Use a number in cm (e.g. 175).")
    elif field == "age":
        parsed = parse_int_safe(value, min_v=13, max_v=100)
        if parsed is None:
            raise ValueError("Invalid age. Use a whole number between 13 and 100.")
    elif field == "gender":
        parsed = normalize_gender(value)
    elif field == "activity_level":
        parsed = normalize_activity(value)
    elif field == "dietary_preference":
        parsed = DietaryPreference.from_id(value.replace(" ", "_").replace("-", "_")).id
    else:  # calorie_goal, vacío = volver a la estimación
        if not value:
            parsed = None
        else:
            parsed = parse_int_safe(value, min_v=800, max_v=6000)
            if parsed is None:
                raise ValueError("Invalid calorie goal. Use a number between 800 and 6000 kcal.")

    with SessionLocal() as s:
        u = _get_user(s, uid)
        setattr(u, field, parsed)
        if field == "current_weight" and u.start_weight is None:
            u.start_weight = parsed
        u.onboarding_step = _first_missing_step(u)
        s.commit()
        step = u.onboarding_step

    if not step:
        logger.info(f"[Onboarding] Perfil completo para {uid}")
    return _question(step)
