# dietary.py

from enum import Enum
from typing import Optional


class DietaryPreference(Enum):
    """Estilos de dieta soportados, con sus ratios base de macros."""

    BALANCED = ("balanced", "Balanced (Default)", "General health, most users, sustainable long-term.", "25% protein, 50% carbs, 25% fat.", 0.50, 0.25, 0.25, "1.6 g/kg")
    HIGH_PROTEIN = ("high_protein", "High Protein", "Muscle gain, satiety, weight loss, aging.", "35% protein, 40% carbs, 25% fat.", 0.40, 0.35, 0.25, "2.0–2.4 g/kg")
    MODERATE_LOW_CARB = ("moderate_low_carb", "Moderate Low-Carb", "Blood sugar control, sustainable fat loss.", "30% protein, 25% carbs, 45% fat.", 0.25, 0.30, 0.45, "1.8–2.2 g/kg")
    KETOGENIC = ("ketogenic", "Ketogenic (Keto)", "Therapeutic keto, epilepsy, rapid fat loss.", "20% protein, 5% carbs, 75% fat.", 0.05, 0.20, 0.75, "1.6–2.0 g/kg")
    VERY_LOW_CARB = ("very_low_carb", "Very Low-Carb (Carnivore-leaning)", "Carnivore / keto-carnivore hybrid.", "35% protein, 5% carbs, 60% fat.", 0.05, 0.35, 0.60, "2.2–3.0 g/kg")
    CARNIVORE = ("carnivore", "Carnivore", "Zero plants, animal foods only.", "45% protein, 0–2% carbs, 55% fat.", 0.01, 0.45, 0.55, "2.5–3.5 g/kg")
    MEDITERRANEAN = ("mediterranean", "Mediterranean", "Heart health, longevity, anti-inflammatory.", "20% protein, 50% carbs, 30% fat.", 0.50, 0.20, 0.30, "1.4–1.8 g/kg")
    PLANT_BASED = ("plant_based", "Plant-Based (Flexitarian)", "Mostly plants, occasional animal foods.", "20% protein, 55% carbs, 25% fat.", 0.55, 0.20, 0.25, "1.6–2.0 g/kg")
    VEGETARIAN = ("vegetarian", "Vegetarian", "No meat, includes dairy & eggs.", "20% protein, 55% carbs, 25% fat.", 0.55, 0.20, 0.25, "1.6–2.0 g/kg")
    VEGAN = ("vegan", "Vegan", "100% plant-based – needs planning for protein.", "18–22% protein, 55–60% carbs, 22–27% fat.", 0.575, 0.20, 0.245, "1.8–2.4 g/kg")
    PALEO = ("paleo", "Paleo", "Whole foods, no grains/legumes/dairy.", "30% protein, 35% carbs, 35% fat.", 0.35, 0.30, 0.35, "1.8–2.2 g/kg")
    LOW_FAT = ("low_fat", "Low Fat (Classic)", "Old-school heart disease reversal (Ornish/Pritikin).", "20% protein, 65% carbs, 15% fat.", 0.65, 0.20, 0.15, "1.2–1.6 g/kg")
    ZONE_DIET = ("zone_diet", "Zone Diet", "40-30-30 style, anti-inflammatory.", "30% protein, 40% carbs, 30% fat.", 0.40, 0.30, 0.30, "1.8–2.0 g/kg")

    def __init__(self, id_: str, title: str, summary: str, macro_guidance: str,
                 carbs_ratio: float, protein_ratio: float, fat_ratio: float, protein_per_kg: str):
        self.id = id_
        self.title = title
        self.summary = summary
        self.macro_guidance = macro_guidance
        self.carbs_ratio = carbs_ratio
        self.protein_ratio = protein_ratio
        self.fat_ratio = fat_ratio
        self.protein_per_kg = protein_per_kg

    @classmethod
    def from_id(cls, id_: Optional[str]) -> "DietaryPreference":
        """Resuelve un id guardado; cualquier valor desconocido cae en BALANCED."""
        if id_ is None or not str(id_).strip():
            return cls.BALANCED
        key = str(id_).strip().lower()

        for pref in cls:
            if pref.id == key:
                return pref

        # ids antiguos que ya no existen en el catálogo
        return LEGACY_IDS.get(key, cls.BALANCED)

    @classmethod
    def all(cls) -> list["DietaryPreference"]:
        return list(cls)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "macroGuidance": self.macro_guidance,
            "carbsRatio": self.carbs_ratio,
            "proteinRatio": self.protein_ratio,
            "fatRatio": self.fat_ratio,
            "proteinPerKg": self.protein_per_kg,
        }


LEGACY_IDS = {
    "keto_low_carb": DietaryPreference.KETOGENIC,
    "pescatarian": DietaryPreference.MEDITERRANEAN,
    "whole30": DietaryPreference.PALEO,
}

# Dietas donde no se tocan los ratios según el objetivo
VERY_LOW_CARB_FAMILY = frozenset({
    DietaryPreference.KETOGENIC,
    DietaryPreference.VERY_LOW_CARB,
    DietaryPreference.CARNIVORE,
})
