# sitequote/services/categorization.py
"""
Advisory categorisation of a shop owner's quotation text.

The result is only a UI suggestion (category + template name); it never
changes a stored Quotation.
"""
from __future__ import annotations

import json
import logging
import re

from flask import current_app
from openai import OpenAI, OpenAIError

from .errors import ValidationFailure

log = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General Construction"

# category -> keywords (lowercase, matched on word boundaries)
CATEGORY_KEYWORDS = {
    "Plumbing": ("pipe", "pipes", "plumbing", "tap", "faucet", "valve", "pvc", "drain", "sanitary"),
    "Electrical": ("wire", "wiring", "cable", "switch", "socket", "electrical", "mcb", "conduit", "led"),
    "Carpentry": ("wood", "timber", "plywood", "door", "carpentry", "furniture", "teak", "laminate"),
    "Cement": ("cement", "opc", "ppc", "concrete", "mortar", "bags"),
    "Steel": ("steel", "tmt", "rebar", "rod", "rods", "bars"),
    "Paint": ("paint", "primer", "emulsion", "putty", "enamel"),
    "Tiles": ("tile", "tiles", "marble", "granite", "vitrified", "ceramic"),
}

PROMPT = """You are an expert in understanding quotations and categorizing them based on their content and the related requirement category.

Given the following quotation text and requirement category, determine the most appropriate category for the quotation and the name of the template to use.

Quotation Text: {quotation_text}
Requirement Category: {requirement_category}

Return a JSON object with the keys "category" and "templateName"."""


def template_name_for(category: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", category.lower()).strip("-")
    return f"{slug or 'general'}-quotation"


def categorize_with_keywords(quotation_text: str, requirement_category: str = "") -> dict:
    words = re.findall(r"[a-z0-9]+", quotation_text.lower())
    scores = {
        cat: sum(1 for w in words if w in kws)
        for cat, kws in CATEGORY_KEYWORDS.items()
    }
    best = max(scores, key=scores.get)
    if scores[best] > 0:
        category = best
    else:
        category = (requirement_category or "").strip() or DEFAULT_CATEGORY
    return {"category": category, "template_name": template_name_for(category)}


def categorize_with_openai(quotation_text: str, requirement_category: str) -> dict:
    cfg = current_app.config
    client = OpenAI(api_key=cfg["OPENAI_API_KEY"], timeout=cfg.get("OPENAI_TIMEOUT", 20.0))
    resp = client.chat.completions.create(
        model=cfg.get("OPENAI_MODEL", "gpt-4o-mini"),
        messages=[{"role": "user", "content": PROMPT.format(
            quotation_text=quotation_text,
            requirement_category=requirement_category or "Unknown",
        )}],
        temperature=0,
        max_tokens=200,
        response_format={"type": "json_object"},
    )
    data = json.loads(resp.choices[0].message.content or "{}")
    category = str(data.get("category") or "").strip()
    if not category:
        raise ValueError("model returned no category")
    template = str(data.get("templateName") or data.get("template_name") or "").strip()
    return {"category": category, "template_name": template or template_name_for(category)}


def categorize_quotation(quotation_text: str, requirement_category: str = "") -> dict:
    text = (quotation_text or "").strip() if isinstance(quotation_text, str) else ""
    if not text:
        raise ValidationFailure("quotation_text", "Quotation text is required.")
    requirement_category = (requirement_category or "").strip() if isinstance(requirement_category, str) else ""

    if current_app.config.get("OPENAI_API_KEY"):
        try:
            result = categorize_with_openai(text, requirement_category)
            result["source"] = "model"
            return result
        except (OpenAIError, ValueError) as e:
            log.warning("categorize_quotation: model call failed, using keywords: %s", e)

    result = categorize_with_keywords(text, requirement_category)
    result["source"] = "keywords"
    return result
