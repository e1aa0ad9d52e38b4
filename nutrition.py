# nutrition.py

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from dietary import DietaryPreference, VERY_LOW_CARB_FAMILY

DEFAULT_CALORIES = 2000
DEFAULT_WEIGHT_KG = 75.0
MAX_REASONABLE_CALORIES = 3500
MIN_SAFE_CALORIES = 1200

ACTIVITY_FACTORS = {
    "sedentary": 1.2,
    "lightly active": 1.375,
    "moderately active": 1.55,
    "very active": 1.725,
    "extremely active": 1.9,
}


# ---------- PERFIL ----------
@dataclass
class UserProfile:
    uid: str = ""
    name: str = ""
    current_weight: float = 0.0
    goal_weight: float = 0.0
    height_cm: float = 0.0
    age: int = 30
    gender: str = ""
    activity_level: str = ""
    dietary_preference: str = DietaryPreference.BALANCED.id
    calorie_goal: Optional[int] = None  # fijado a mano por el usuario
    start_weight: float = 0.0  # peso al empezar el plan

    @property
    def dietary_preference_enum(self) -> DietaryPreference:
        return DietaryPreference.from_id(self.dietary_preference)

    @property
    def bmi(self) -> float:
        if self.height_cm <= 0:
            return 0.0
        m = self.height_cm / 100
        return self.current_weight / (m * m)

    @property
    def bmi_category(self) -> str:
        bmi = self.bmi
        if bmi < 18.5:
            return "Underweight"
        if bmi < 25.0:
            return "Normal"
        if bmi < 30.0:
            return "Overweight"
        return "Obese"

    @property
    def weight_difference(self) -> float:
        return self.goal_weight - self.current_weight

    @property
    def has_reached_goal(self) -> bool:
        return abs(self.weight_difference) < 0.1

    @property
    def progress_percentage(self) -> float:
        """Fracción (0.0-1.0) del camino recorrido desde el peso inicial hasta el objetivo."""
        start = self.start_weight if self.start_weight > 0 else self.current_weight
        total = abs(self.goal_weight - start)
        if total <= 0:
            return 1.0
        if self.goal_weight < start:
            changed = start - self.current_weight
        else:
            changed = self.current_weight - start
        return min(max(changed / total, 0.0), 1.0)

    @property
    def estimated_daily_calories(self) -> Optional[int]:
        """Kcal diarias: objetivo manual si existe, si no Mifflin-St Jeor ajustado al objetivo.

        Devuelve None si faltan peso o altura (el calculador usa entonces 2000).
        """
        if self.calorie_goal is not None:
            return self.calorie_goal
        if self.current_weight <= 0 or self.height_cm <= 0:
            return None

        age = self.age if 13 <= self.age <= 100 else 30
        bmr = mifflin_st_jeor(self.gender, self.current_weight, self.height_cm, age)
        maintenance = tdee(bmr, self.activity_level)

        if self.goal_weight < self.current_weight - 0.5:
            to_lose = self.current_weight - self.goal_weight
            if to_lose > 10:
                deficit = 750
            elif to_lose >= 5:
                deficit = 600
            else:
                deficit = 500
            return max(maintenance - deficit, MIN_SAFE_CALORIES)

        if self.goal_weight > self.current_weight + 0.5:
            to_gain = self.goal_weight - self.current_weight
            if to_gain > 10:
                surplus = 500
            elif to_gain >= 5:
                surplus = 400
            else:
                surplus = 300
            return min(maintenance + surplus, MAX_REASONABLE_CALORIES)

        return min(maintenance, MAX_REASONABLE_CALORIES)

    @classmethod
    def create(cls, uid: str, name: str, current_weight: float, goal_weight: float, height_cm: float,
               activity_level: str, dietary_preference: DietaryPreference = DietaryPreference.BALANCED,
               age: int = 30, gender: str = "", calorie_goal: Optional[int] = None) -> "UserProfile":
        """Crea un perfil validado; lanza ValueError si algún dato no es razonable."""
        if not name or len(name.strip()) < 2:
            raise ValueError("Name must be at least 2 characters long")
        if not 0 < current_weight < 500:
            raise ValueError("Current weight must be between 0 and 500 kg")
        if not 0 < goal_weight < 500:
            raise ValueError("Goal weight must be between 0 and 500 kg")
        if not 0 < height_cm < 300:
            raise ValueError("Height must be between 0 and 300 cm")
        if not activity_level or not activity_level.strip():
            raise ValueError("Activity level cannot be empty")
        if not 13 <= age <= 100:
            raise ValueError("Age must be between 13 and 100")

        return cls(
            uid=uid,
            name=name.strip(),
            current_weight=current_weight,
            goal_weight=goal_weight,
            height_cm=height_cm,
            age=age,
            gender=gender,
            activity_level=activity_level.strip().lower(),
            dietary_preference=dietary_preference.id,
            calorie_goal=calorie_goal,
            start_weight=current_weight,
        )


def mifflin_st_jeor(gender: str, kg: float, cm: float, age: int) -> float:
    female = (gender or "").lower() in ("female", "f", "woman")
    return 10*kg + 6.25*cm - 5*age + (-161 if female else 5)


def tdee(bmr: float, activity_level: str) -> int:
    return int(bmr * ACTIVITY_FACTORS.get((activity_level or "").lower(), 1.375))


# ---------- OBJETIVO ----------
class GoalTrend(Enum):
    LOSE = "lose"
    GAIN = "gain"
    MAINTAIN = "maintain"


def classify_goal_trend(current_weight: float, goal_weight: float) -> GoalTrend:
    if goal_weight < current_weight - 0.1:
        return GoalTrend.LOSE
    if goal_weight > current_weight + 0.1:
        return GoalTrend.GAIN
    return GoalTrend.MAINTAIN


# (carbs, protein, fat) que se suman a los ratios base según el objetivo
TREND_RATIO_DELTAS = {
    GoalTrend.LOSE: (-0.05, 0.05, 0.0),
    GoalTrend.GAIN: (0.05, -0.02, 0.02),
    GoalTrend.MAINTAIN: (0.0, 0.0, 0.0),
}

# g/kg de proteína mínima según objetivo y máxima según dieta
PROTEIN_FLOOR_PER_KG = {
    GoalTrend.LOSE: 1.5,
    GoalTrend.GAIN: 1.4,
    GoalTrend.MAINTAIN: 1.3,
}
PROTEIN_CEILING_PER_KG = {
    DietaryPreference.HIGH_PROTEIN: 2.2,
    DietaryPreference.CARNIVORE: 2.4,
}
DEFAULT_PROTEIN_CEILING_PER_KG = 2.0

CARBS_BOUNDS = (0.0, 0.65)
PROTEIN_BOUNDS = (0.15, 0.45)
FAT_BOUNDS = (0.2, 0.8)

TREND_NOTES = {
    GoalTrend.LOSE: " • Elevated protein and slightly lower carbs to support fat loss.",
    GoalTrend.GAIN: " • Extra carbs and fats to fuel muscle gain and recovery.",
    GoalTrend.MAINTAIN: " • Balanced ratios to support maintenance.",
}


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return max(lo, min(hi, value))


INT_MAX = 2**31 - 1


def _round(value: float) -> int:
    # redondeo "half up", no el de banquero de round(); satura como un Int
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return INT_MAX if value > 0 else -INT_MAX - 1
    return max(min(int(math.floor(value + 0.5)), INT_MAX), -INT_MAX - 1)


def adjusted_ratios(preference: DietaryPreference, trend: GoalTrend) -> tuple[float, float, float]:
    """Ratios (carbs, protein, fat) ajustados al objetivo, acotados y normalizados a 1.0."""
    carbs, protein, fat = preference.carbs_ratio, preference.protein_ratio, preference.fat_ratio

    if preference not in VERY_LOW_CARB_FAMILY:
        d_carbs, d_protein, d_fat = TREND_RATIO_DELTAS[trend]
        carbs += d_carbs
        protein += d_protein
        fat += d_fat

    carbs = _clamp(carbs, CARBS_BOUNDS)
    protein = _clamp(protein, PROTEIN_BOUNDS)
    fat = _clamp(fat, FAT_BOUNDS)

    total = carbs + protein + fat
    if total != 0:
        carbs, protein, fat = carbs / total, protein / total, fat / total
    return carbs, protein, fat


# ---------- MACROS ----------
@dataclass(frozen=True)
class MacroTargets:
    calorie_goal: int
    protein_grams: int
    carbs_grams: int
    fat_grams: int
    protein_percent: int
    carbs_percent: int
    fat_percent: int
    recommendation: str

    def as_dict(self) -> dict:
        return {
            "calorieGoal": self.calorie_goal,
            "proteinGrams": self.protein_grams,
            "carbsGrams": self.carbs_grams,
            "fatGrams": self.fat_grams,
            "proteinPercent": self.protein_percent,
            "carbsPercent": self.carbs_percent,
            "fatPercent": self.fat_percent,
            "recommendation": self.recommendation,
        }


def goal_trend_for(profile: Optional[UserProfile]) -> GoalTrend:
    if profile is None:
        return GoalTrend.MAINTAIN
    return classify_goal_trend(profile.current_weight, profile.goal_weight)


def calculate_macro_targets(profile: Optional[UserProfile]) -> MacroTargets:
    """Reparto de proteína, carbohidratos y grasa para las kcal del perfil.

    Nunca falla: sin perfil (o con datos incompletos) usa 2000 kcal, 75 kg y dieta BALANCED.
    """
    calories = profile.estimated_daily_calories if profile is not None else None
    if calories is None:
        calories = DEFAULT_CALORIES
    preference = profile.dietary_preference_enum if profile is not None else DietaryPreference.BALANCED
    trend = goal_trend_for(profile)

    carbs_ratio, protein_ratio, fat_ratio = adjusted_ratios(preference, trend)

    weight_kg = DEFAULT_WEIGHT_KG
    if profile is not None and math.isfinite(profile.current_weight) and profile.current_weight > 0:
        weight_kg = profile.current_weight

    # proteína: bandas seguras por kg
    provisional_protein = calories * protein_ratio / 4.0
    ceiling_per_kg = PROTEIN_CEILING_PER_KG.get(preference, DEFAULT_PROTEIN_CEILING_PER_KG)
    protein_min = max(PROTEIN_FLOOR_PER_KG[trend] * weight_kg, 80.0)
    protein_max = max(min(ceiling_per_kg * weight_kg, 220.0), protein_min)
    protein_grams = _clamp(provisional_protein, (protein_min, protein_max))

    min_fat_calories = max(calories * 0.20, weight_kg * 9 * 0.5)

    remaining = max(calories - protein_grams * 4.0, 0.0)
    carb_fat_total = carbs_ratio + fat_ratio
    carbs_share = carbs_ratio / carb_fat_total if carb_fat_total > 0 else 0.6

    fat_calories = max(remaining * (1 - carbs_share), min_fat_calories)
    fat_calories = min(fat_calories, remaining)
    carb_calories = max(remaining - fat_calories, 0.0)

    carbs_grams = max(_round(carb_calories / 4.0), 0)
    fat_grams = max(_round(fat_calories / 9.0), 0)
    protein_grams_int = max(_round(protein_grams), 0)

    if calories > 0:
        protein_percent = _round(protein_grams_int * 4.0 / calories * 100)
        carbs_percent = _round(carbs_grams * 4.0 / calories * 100)
        fat_percent = _round(fat_grams * 9.0 / calories * 100)
    else:
        protein_percent = carbs_percent = fat_percent = 0

    recommendation = (
        f"{preference.title} focus: {carbs_percent}% carbs / {protein_percent}% protein / {fat_percent}% fat"
        + TREND_NOTES[trend]
    )

    return MacroTargets(
        calorie_goal=int(calories),
        protein_grams=protein_grams_int,
        carbs_grams=carbs_grams,
        fat_grams=fat_grams,
        protein_percent=protein_percent,
        carbs_percent=carbs_percent,
        fat_percent=fat_percent,
        recommendation=recommendation,
    )


# ---------- ADHERENCIA ----------
@dataclass
class MealEntry:
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    name: str = ""


@dataclass
class MacroAdherence:
    actual_calories: int
    actual_protein: int
    actual_carbs: int
    actual_fat: int
    protein_percent: int
    carbs_percent: int
    fat_percent: int
    trend: GoalTrend
    off_macros: list[str] = field(default_factory=list)
    missing_weight_goal: bool = False

    @property
    def off_target(self) -> bool:
        return bool(self.off_macros)

    def as_dict(self) -> dict:
        return {
            "actualCalories": self.actual_calories,
            "actualProtein": self.actual_protein,
            "actualCarbs": self.actual_carbs,
            "actualFat": self.actual_fat,
            "proteinAdherence": self.protein_percent,
            "carbsAdherence": self.carbs_percent,
            "fatAdherence": self.fat_percent,
            "goalTrend": self.trend.value,
            "offMacros": list(self.off_macros),
            "offTarget": self.off_target,
            "missingWeightGoal": self.missing_weight_goal,
        }


def _adherence(actual: float, target: int) -> int:
    return int(actual / target * 100) if target > 0 else 0


def _is_off(percent: int) -> bool:
    return percent < 80 or percent > 120


def calculate_adherence(profile: Optional[UserProfile], targets: MacroTargets,
                        meals: Iterable[MealEntry]) -> MacroAdherence:
    """Compara lo comido en el día con los objetivos de macros."""
    meals = list(meals)
    calories = sum(m.calories for m in meals)
    protein = sum(m.protein for m in meals)
    carbs = sum(m.carbs for m in meals)
    fat = sum(m.fat for m in meals)

    percents = {
        "protein": _adherence(protein, targets.protein_grams),
        "carbs": _adherence(carbs, targets.carbs_grams),
        "fat": _adherence(fat, targets.fat_grams),
    }
    off_macros = [k for k, v in percents.items() if _is_off(v)]

    trend = goal_trend_for(profile)
    if trend is GoalTrend.LOSE:
        missing = calories > targets.calorie_goal * 1.1 or bool(off_macros)
    elif trend is GoalTrend.GAIN:
        missing = calories < targets.calorie_goal * 0.9 or bool(off_macros)
    else:
        missing = False

    return MacroAdherence(
        actual_calories=calories,
        actual_protein=protein,
        actual_carbs=carbs,
        actual_fat=fat,
        protein_percent=percents["protein"],
        carbs_percent=percents["carbs"],
        fat_percent=percents["fat"],
        trend=trend,
        off_macros=off_macros,
        missing_weight_goal=missing,
    )


def suggest_diet_changes(profile: Optional[UserProfile], adherence: MacroAdherence) -> list[str]:
    """Sugerencias de dieta según el objetivo, no según lo que el usuario come ahora."""
    current = profile.dietary_preference_enum if profile is not None else DietaryPreference.BALANCED
    suggestions = []

    if adherence.trend is GoalTrend.LOSE:
        if current not in (DietaryPreference.HIGH_PROTEIN, DietaryPreference.MODERATE_LOW_CARB,
                           DietaryPreference.KETOGENIC):
            suggestions.append("High Protein diet (better for preserving muscle during weight loss)")
            suggestions.append("Moderate Low-Carb diet (helps control appetite and blood sugar)")
    elif adherence.trend is GoalTrend.GAIN:
        if current is not DietaryPreference.HIGH_PROTEIN:
            suggestions.append("High Protein diet (essential for muscle building)")
        if current in (DietaryPreference.KETOGENIC, DietaryPreference.VERY_LOW_CARB):
            suggestions.append("Balanced or High Protein diet (you need more carbs for muscle gain)")
    else:
        if current in (DietaryPreference.KETOGENIC, DietaryPreference.VERY_LOW_CARB):
            suggestions.append("Balanced diet (more sustainable for long-term maintenance)")

    if len(adherence.off_macros) == 3:
        suggestions.append("Consider a more structured diet plan to ensure you hit your macro targets")

    if not suggestions:
        suggestions.append("Focus on hitting your macro targets consistently - that's what matters for your goals")
    return suggestions
