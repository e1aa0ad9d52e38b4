# coach.py

import os
import logging
from typing import Optional

import openai
from dotenv import load_dotenv

from nutrition import MacroAdherence, MacroTargets, UserProfile
from prompts import SYSTEM_PROMPT, build_coach_prompt, fallback_brief

load_dotenv()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.3"))

logger = logging.getLogger(__name__)


def generate_coach_brief(profile: UserProfile, targets: MacroTargets,
                         adherence: Optional[MacroAdherence] = None,
                         suggestions: Optional[list[str]] = None) -> dict:
    """Genera el mensaje del coach con OpenAI; si la llamada falla, devuelve un texto fijo."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not configured")

    prompt = build_coach_prompt(profile, targets, adherence, suggestions)

    client = openai.OpenAI(api_key=api_key)
    try:
        completion = client.chat.completions.create(
            model=OPENAI_MODEL,
            temperature=OPENAI_TEMPERATURE,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
    except openai.OpenAIError as e:
        logger.error(f"[OpenAI] Error generando brief para {profile.uid}: {e}")
        return {"brief": fallback_brief(profile, targets), "source": "fallback"}

    text = (completion.choices[0].message.content or "").strip()
    if not text:
        logger.warning(f"[OpenAI] Respuesta vacía para {profile.uid}")
        return {"brief": fallback_brief(profile, targets), "source": "fallback"}
    return {"brief": text, "source": "openai"}
