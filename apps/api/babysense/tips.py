"""Age-banded parenting tips with caller-owned rotation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel

from .schemas import Tip, TipCategory


def _tip(title: str, body: str, category: TipCategory) -> Tip:
    return Tip(title=title, body=body, category=category)


# (exclusive upper bound in days, tips); checked in ascending order.
TIP_BANDS = [
    (
        30,
        [
            _tip(
                "Newborn Sleep",
                "Newborns sleep 14-17 hours per day in short bursts. This is completely normal!",
                TipCategory.SLEEP,
            ),
            _tip(
                "Feeding Frequency",
                "Breastfed babies typically feed every 2-3 hours, while formula-fed babies may go 3-4 hours.",
                TipCategory.FEEDING,
            ),
            _tip(
                "Tummy Time",
                "Start with 2-3 minutes of tummy time several times a day to strengthen neck muscles.",
                TipCategory.DEVELOPMENT,
            ),
            _tip(
                "Crying is Normal",
                "Babies cry 1-3 hours per day on average. Peak crying usually occurs around 6 weeks.",
                TipCategory.BEHAVIOR,
            ),
        ],
    ),
    (
        90,
        [
            _tip(
                "Social Smiles",
                "Around 6-8 weeks, your baby will start smiling in response to your voice and face.",
                TipCategory.DEVELOPMENT,
            ),
            _tip(
                "Longer Sleep Stretches",
                "By 2-3 months, many babies can sleep for 4-6 hour stretches at night.",
                TipCategory.SLEEP,
            ),
            _tip(
                "Increased Tummy Time",
                "Gradually increase tummy time to 15-20 minutes per day to build strength.",
                TipCategory.DEVELOPMENT,
            ),
            _tip(
                "Growth Spurts",
                "Expect growth spurts around 2-3 weeks, 6 weeks, and 3 months with increased feeding.",
                TipCategory.FEEDING,
            ),
        ],
    ),
    (
        180,
        [
            _tip(
                "Rolling Over",
                "Most babies start rolling from tummy to back around 4 months, then back to tummy.",
                TipCategory.DEVELOPMENT,
            ),
            _tip(
                "Sleep Regression",
                "The 4-month sleep regression is common as sleep patterns mature. Stay consistent!",
                TipCategory.SLEEP,
            ),
            _tip(
                "Introducing Solids",
                "Around 6 months, look for signs of readiness: sitting up, showing interest in food.",
                TipCategory.FEEDING,
            ),
            _tip(
                "Babbling Begins",
                "Your baby will start making consonant sounds like 'ba-ba' and 'da-da' around 4-6 months.",
                TipCategory.DEVELOPMENT,
            ),
        ],
    ),
    (
        None,
        [
            _tip(
                "Sitting Up",
                "Most babies can sit without support by 6-8 months. Provide a safe space to practice.",
                TipCategory.DEVELOPMENT,
            ),
            _tip(
                "Solid Food Exploration",
                "Let your baby explore different textures and flavors. Mess is part of learning!",
                TipCategory.FEEDING,
            ),
            _tip(
                "Stranger Anxiety",
                "Stranger anxiety around 6-12 months is a normal sign of healthy attachment.",
                TipCategory.BEHAVIOR,
            ),
            _tip(
                "Crawling Preparation",
                "Encourage crawling by placing toys just out of reach during tummy time.",
                TipCategory.DEVELOPMENT,
            ),
        ],
    ),
]


def tips_for_age(age_days: int) -> List[Tip]:
    for upper, tips in TIP_BANDS:
        if upper is None or age_days < upper:
            return tips
    return TIP_BANDS[-1][1]


@dataclass(frozen=True)
class TipRotation:
    """Position in a baby's tip list, owned by the viewing session."""

    baby_id: Optional[str] = None
    index: int = 0

    def for_baby(self, baby_id: str) -> "TipRotation":
        if baby_id == self.baby_id:
            return self
        return TipRotation(baby_id=baby_id)

    def advance(self, band_size: int) -> "TipRotation":
        if band_size <= 0:
            raise ValueError("band_size must be positive")
        return TipRotation(baby_id=self.baby_id, index=(self.index + 1) % band_size)


class TipView(BaseModel):
    baby_id: Optional[str] = None
    tip: Tip
    index: int
    total: int
    position_label: str
    age_label: str


def current_tip(age_days: int, rotation: TipRotation) -> TipView:
    tips = tips_for_age(age_days)
    index = rotation.index % len(tips)
    return TipView(
        baby_id=rotation.baby_id,
        tip=tips[index],
        index=index,
        total=len(tips),
        position_label=f"Tip {index + 1} of {len(tips)}",
        age_label=f"Age: {age_days // 30} months",
    )


def next_tip(age_days: int, rotation: TipRotation) -> tuple[TipRotation, TipView]:
    advanced = rotation.advance(len(tips_for_age(age_days)))
    return advanced, current_tip(age_days, advanced)
