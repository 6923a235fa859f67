"""Prompt construction and chat message assembly for the reasoning backend."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

SYSTEM_PROMPT = """Tu es un expert en mathématiques. Tu résous les problèmes mathématiques de manière claire et pédagogique.

Pour chaque problème, tu dois retourner une réponse JSON valide avec cette structure exacte:
{
  "steps": [
    {
      "title": "Titre de l'étape",
      "content": "Explication détaillée de cette étape",
      "formula": "Formule mathématique si applicable (optionnel)"
    }
  ],
  "finalAnswer": "La réponse finale"
}

Règles:
- Donne toujours entre 3 et 7 étapes claires
- Chaque étape doit avoir un titre court et un contenu explicatif
- Inclus les formules mathématiques dans le champ "formula" quand c'est pertinent
- La réponse finale doit être concise et claire
- Utilise des notations mathématiques standard (x², √, π, ∫, ∑, etc.)
- Adapte le niveau d'explication au type de problème
- Si une image est fournie, analyse-la attentivement pour extraire le problème mathématique
- Réponds UNIQUEMENT avec le JSON, sans texte avant ou après"""

DEFAULT_PROMPT_PACK: Dict[str, str] = {
    "system": SYSTEM_PROMPT,
    "category_context": "\nCatégorie: {category}",
    "user_text": "Résous ce problème mathématique:{category_context}\n\nProblème: {problem}",
    "user_image": "Analyse cette image et résous le problème mathématique qu'elle contient:{category_context}",
    "user_image_with_context": (
        "Résous ce problème mathématique visible dans l'image:{category_context}\n\n"
        "Contexte additionnel: {problem}"
    ),
}


def resolve_prompt_pack(prompt_pack: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Overlays a configured prompt pack on the built-in defaults."""
    merged = dict(DEFAULT_PROMPT_PACK)
    for key, value in (prompt_pack or {}).items():
        if value:
            merged[key] = str(value)
    return merged


def build_category_context(category: Optional[str], prompt_pack: Optional[Dict[str, str]] = None) -> str:
    cleaned = (category or "").strip()
    if not cleaned:
        return ""
    return resolve_prompt_pack(prompt_pack)["category_context"].format(category=cleaned)


def resolve_image_url(image: str, default_media_type: str = "image/png") -> str:
    """Returns a model-consumable URL for an encoded image.

    Data URLs and remote URLs pass through; bare base64 payloads are wrapped in
    a data URL.
    """
    cleaned = image.strip()
    if cleaned.startswith("data:") or cleaned.startswith("http://") or cleaned.startswith("https://"):
        return cleaned
    return "data:{};base64,{}".format(default_media_type, cleaned)


def build_user_content(
    problem: str,
    category: Optional[str] = None,
    image: Optional[str] = None,
    prompt_pack: Optional[Dict[str, str]] = None,
) -> Any:
    """Builds the user message content.

    Args:
        problem: Problem statement, possibly empty when an image is given.
        category: Advisory category appended as context text.
        image: Optional encoded image.
        prompt_pack: Optional template overrides.

    Returns:
        A plain string for text-only requests, or a `[text, image_url]` content
        block list when an image is attached.
    """
    pack = resolve_prompt_pack(prompt_pack)
    cleaned_problem = (problem or "").strip()
    category_context = build_category_context(category, pack)

    if image and image.strip():
        template = pack["user_image_with_context"] if cleaned_problem else pack["user_image"]
        text = template.format(category_context=category_context, problem=cleaned_problem)
        return [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": resolve_image_url(image)}},
        ]

    return pack["user_text"].format(category_context=category_context, problem=cleaned_problem)


def build_messages(
    problem: str,
    category: Optional[str] = None,
    image: Optional[str] = None,
    prompt_pack: Optional[Dict[str, str]] = None,
) -> List[Dict[str, Any]]:
    """Builds the system + user chat messages for one solve."""
    pack = resolve_prompt_pack(prompt_pack)
    return [
        {"role": "system", "content": pack["system"]},
        {"role": "user", "content": build_user_content(problem, category, image, pack)},
    ]
