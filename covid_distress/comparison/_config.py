"""
Predictor Lookup
================

Static predictor -> (domain category, display label) table used by the
estimate comparison and the figures. Predictors missing here have no
category.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

UNCATEGORIZED = "uncategorized"

CATEGORY_ORDER = [
    "mental-health",
    "personality",
    "media",
    "emotion-regulation",
    "covid-measure",
    "demographic",
    "social",
]

CATEGORY_COLORS = {
    "mental-health": "#d62728",
    "personality": "#9467bd",
    "media": "#ff7f0e",
    "emotion-regulation": "#2ca02c",
    "covid-measure": "#1f77b4",
    "demographic": "#7f7f7f",
    "social": "#8c564b",
    UNCATEGORIZED: "#bcbd22",
}


@dataclass(frozen=True)
class PredictorInfo:
    """Category and display label of one predictor column."""

    category: str
    label: str


def _entries(category: str, labels: Mapping[str, str]) -> Dict[str, PredictorInfo]:
    return {col: PredictorInfo(category, label) for col, label in labels.items()}


PREDICTOR_LOOKUP: Dict[str, PredictorInfo] = {
    **_entries("mental-health", {
        "depression": "Depression",
        "anxiety": "Anxiety",
        "stress": "Perceived stress",
        "wellbeing": "Well-being",
        "sleep_quality": "Sleep quality",
    }),
    **_entries("personality", {
        "neuroticism": "Neuroticism",
        "extraversion": "Extraversion",
        "openness": "Openness",
        "agreeableness": "Agreeableness",
        "conscientiousness": "Conscientiousness",
        "intolerance_uncertainty": "Intolerance of uncertainty",
    }),
    **_entries("media", {
        "news_exposure": "COVID-19 news exposure",
        "social_media_use": "Social media use",
        "info_seeking": "Information seeking",
        "media_trust": "Trust in media",
    }),
    **_entries("emotion-regulation", {
        "reappraisal": "Cognitive reappraisal",
        "suppression": "Expressive suppression",
        "rumination": "Rumination",
    }),
    **_entries("covid-measure", {
        "risk_perception": "Perceived infection risk",
        "covid_worry": "COVID-19 worry",
        "covid_knowledge": "COVID-19 knowledge",
        "lockdown_days": "Days in lockdown",
        "infection_contact": "Contact with infected person",
    }),
    **_entries("demographic", {
        "age": "Age",
        "gender": "Gender",
        "education": "Education",
        "income": "Income",
        "essential_worker": "Essential worker",
    }),
    **_entries("social", {
        "loneliness": "Loneliness",
        "social_support": "Social support",
        "household_size": "Household size",
    }),
}


def get_category(predictor: str, lookup: Optional[Mapping[str, PredictorInfo]] = None) -> Optional[str]:
    info = (PREDICTOR_LOOKUP if lookup is None else lookup).get(predictor)
    return info.category if info else None


def get_label(predictor: str, lookup: Optional[Mapping[str, PredictorInfo]] = None) -> str:
    """Return a human-readable label for a column."""
    info = (PREDICTOR_LOOKUP if lookup is None else lookup).get(predictor)
    return info.label if info else predictor
