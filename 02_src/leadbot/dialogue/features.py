"""Listing feature formatting, dialogue language and opening messages."""

import re

from ..models import OperationKind

BULLET = "•"
LANGUAGE_LOCAL = "es"
LANGUAGE_ENGLISH = "en"

HOME_COUNTRY_CODE = "34"
LOCAL_NUMBER_PATTERN = re.compile(r"^[6789]\d{8}$")

_LEADING_BULLETS = re.compile(r"^[•*\-]+\s*")
_NON_DIGITS = re.compile(r"\D")
_LEADING_ZEROS = re.compile(r"^00+")

_NO_FEATURES = {
    LANGUAGE_LOCAL: "Información no disponible por el momento",
    LANGUAGE_ENGLISH: "Property details are not available at the moment",
}


def clean_feature(line: str) -> str:
    """Strip leading bullet glyphs and whitespace from a feature item."""
    return _LEADING_BULLETS.sub("", line.strip()).strip()


def split_by_comma_outside_parentheses(text: str) -> list[str]:
    """Split on commas that are not inside parentheses."""
    segments = []
    depth = 0
    buffer = ""
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        if char == "," and depth == 0:
            if buffer.strip():
                segments.append(buffer.strip())
            buffer = ""
            continue
        buffer += char
    if buffer.strip():
        segments.append(buffer.strip())
    return segments


def split_features(features: str) -> list[str]:
    """
    Split feature text into items.

    Newlines win over semicolons, semicolons over commas outside
    parentheses. Text with no delimiter is a single item.
    """
    normalized = features.replace("\r\n", "\n").strip()
    if not normalized:
        return []

    by_newline = [s.strip() for s in re.split(r"\n+", normalized) if s.strip()]
    if len(by_newline) > 1:
        return by_newline

    by_semicolon = [s.strip() for s in re.split(r";\s*", normalized) if s.strip()]
    if len(by_semicolon) > 1:
        return by_semicolon

    by_comma = split_by_comma_outside_parentheses(normalized)
    if len(by_comma) > 1:
        return by_comma

    return [normalized]


def format_feature_list(features: str, language: str = LANGUAGE_LOCAL) -> str:
    """Render feature text as a bulleted list."""
    items = [item for item in map(clean_feature, split_features(features)) if item]
    if items:
        return "\n".join(f"{BULLET} {item}" for item in items)

    if not features.strip():
        return f"{BULLET} {_NO_FEATURES.get(language, _NO_FEATURES[LANGUAGE_LOCAL])}"

    fallback = clean_feature(features)
    return f"{BULLET} {fallback}" if fallback else ""


def compact_message(lines: list[str]) -> str:
    """Join lines, collapsing runs of blank lines and trimming blank edges."""
    normalized: list[str] = []
    for line in lines:
        if line == "" and normalized and normalized[-1] == "":
            continue
        normalized.append(line)
    while normalized and normalized[0] == "":
        normalized.pop(0)
    while normalized and normalized[-1] == "":
        normalized.pop()
    return "\n".join(normalized)


def is_local_address(address: str | None) -> bool:
    """True for home-country numbers. Empty or missing addresses count as local."""
    if not address or not address.strip():
        return True
    digits = _LEADING_ZEROS.sub("", _NON_DIGITS.sub("", address.strip()))
    if not digits:
        return True
    return digits.startswith(HOME_COUNTRY_CODE) or bool(LOCAL_NUMBER_PATTERN.match(digits))


def resolve_language(address: str | None) -> str:
    return LANGUAGE_LOCAL if is_local_address(address) else LANGUAGE_ENGLISH


def compose_initial_messages(
    operation_kind: OperationKind,
    link: str,
    features: str,
    language: str = LANGUAGE_LOCAL,
    agent_name: str = "Lead Assistant",
    profile_url: str = "",
) -> list[str]:
    """Build the two opening messages: introduction, then the listing prompt."""
    is_sale = operation_kind == OperationKind.SALE
    feature_list = format_feature_list(features, language)

    if language == LANGUAGE_ENGLISH:
        context = "for sale" if is_sale else "for rent"
        introduction = compact_message([
            f"Hi, I'm {agent_name}'s virtual assistant, it's a pleasure to help you.",
            "",
            "Don't forget to follow me, there are all kinds of real estate "
            "opportunities on this profile 👇" if profile_url else "",
            "",
            profile_url,
        ])
        listing = compact_message([
            f"You've shown interest in this property {context} 👇",
            "",
            link,
            "",
            "Just to confirm, have you reviewed the property highlights?",
            "",
            feature_list,
            "",
            "* If I ever say something that doesn't apply, thanks for understanding. "
            "I'm improved every day to deliver the best service 🤩",
        ])
        return [introduction, listing]

    context = "en venta" if is_sale else "en alquiler"
    introduction = compact_message([
        f"Hola, soy el colaborador virtual de {agent_name}, un placer atenderte.",
        "",
        "No olvides seguirme, encontrarás todo tipo de oportunidades "
        "inmobiliarias en este perfil 👇" if profile_url else "",
        "",
        profile_url,
    ])
    listing = compact_message([
        f"Te has interesado en esta vivienda {context} 👇",
        "",
        link,
        "",
        "Por confirmar, ¿has visto las características?",
        "",
        feature_list,
        "",
        "* Si en algún momento digo algo que no procede, pido comprensión, "
        "cada día me están mejorando para dar el mejor servicio 🤩",
    ])
    return [introduction, listing]
