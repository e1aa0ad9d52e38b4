from typing import Optional

from nutrition import GoalTrend, MacroAdherence, MacroTargets, UserProfile

SYSTEM_PROMPT = (
    "You are MacroCoach, a motivating, practical and safe nutrition coach. "
    "Provide a 3-5 sentence daily insight with specific numbers (calories, protein, carbs, fat). "
    "Include a greeting, today's key metrics, and 1-2 actionable recommendations. Be concise but specific. "
    "Never judge and never prescribe medication. If the user mentions pregnancy, illness, eating disorders "
    "or medication, recommend seeing a professional."
)

COACH_STYLE_SUFFIX = (
    "Always close with one micro-action for today (5 minutes or less)."
)

GOAL_PHRASES = {
    GoalTrend.LOSE: "lose weight",
    GoalTrend.GAIN: "gain weight",
    GoalTrend.MAINTAIN: "maintain weight",
}


def build_coach_prompt(profile: UserProfile, targets: MacroTargets,
                       adherence: Optional[MacroAdherence] = None,
                       suggestions: Optional[list[str]] = None) -> str:
    """Resumen compacto de perfil + objetivos + ingesta del día para el modelo."""
    lines = [
        f"{profile.name or 'User'}: {profile.current_weight:g}kg→{profile.goal_weight:g}kg "
        f"({profile.progress_percentage * 100:.0f}%), "
        f"{targets.calorie_goal}kcal goal.",
        f"Diet: {profile.dietary_preference_enum.title} (targets: {targets.protein_grams}g protein, "
        f"{targets.carbs_grams}g carbs, {targets.fat_grams}g fat).",
    ]

    if adherence is not None:
        lines.append(
            f"Today: {adherence.actual_protein}g protein ({adherence.protein_percent}% of target), "
            f"{adherence.actual_carbs}g carbs ({adherence.carbs_percent}% of target), "
            f"{adherence.actual_fat}g fat ({adherence.fat_percent}% of target), {adherence.actual_calories}cal."
        )

        if adherence.missing_weight_goal:
            lines.append(
                f"\nIMPORTANT: User's goal is to {GOAL_PHRASES[adherence.trend]} but they're not hitting their "
                f"macro targets (protein: {adherence.protein_percent}%, carbs: {adherence.carbs_percent}%, "
                f"fat: {adherence.fat_percent}%). "
                "Provide concrete recommendations for: "
                "1) Specific habits to add "
                f"2) Dietary changes ({'. '.join(suggestions or [])}) "
                "3) Meal planning. "
                "Be firm but encouraging and give concrete steps they can take TODAY."
            )

    lines.append(COACH_STYLE_SUFFIX)
    return "\n".join(lines)


def fallback_brief(profile: Optional[UserProfile], targets: MacroTargets) -> str:
    name = (profile.name.split(" ")[0] if profile and profile.name else "there")
    return (
        f"Hi {name}! Today's plan: {targets.calorie_goal} kcal with {targets.protein_grams}g protein, "
        f"{targets.carbs_grams}g carbs and {targets.fat_grams}g fat. {targets.recommendation}"
    )
