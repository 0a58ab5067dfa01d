"""
Database initialization script
Idempotent seeding of the tardiness and disciplinary reference rules
"""
import logging

from sqlalchemy.orm import Session

from app import constants
from app.models.disciplinary import DisciplinaryActionRule, DisciplinaryActionType, DisciplinaryTriggerType
from app.models.tardiness import TardinessRule, TardinessType

logger = logging.getLogger(__name__)


TARDINESS_RULES = [
    {
        "code": constants.TARDINESS_RULE_LATE_ARRIVAL,
        "name": "Late Arrivals",
        "description": "Arrivals 1 to 15 minutes late. Every 4 late arrivals equal 1 formal tardy.",
        "type": TardinessType.LATE_ARRIVAL,
        "start_minutes_late": constants.LATE_ARRIVAL_START,
        "end_minutes_late": constants.LATE_ARRIVAL_END,
        "accumulation_count": 4,
        "equivalent_formal_tardies": 1,
    },
    {
        "code": constants.TARDINESS_RULE_DIRECT_TARDINESS,
        "name": "Direct Tardiness",
        "description": "Arrivals more than 15 minutes late. Counted as a formal tardy immediately.",
        "type": TardinessType.DIRECT_TARDINESS,
        "start_minutes_late": constants.DIRECT_TARDINESS_START,
        "end_minutes_late": None,
        "accumulation_count": 1,
        "equivalent_formal_tardies": 1,
    },
    {
        "code": constants.TARDINESS_RULE_POST_FIRST_TARDINESS,
        "name": "Post First Tardy",
        "description": (
            "After the first formal tardy of the month, any late arrival "
            "(even 1 minute) counts as a formal tardy."
        ),
        "type": TardinessType.LATE_ARRIVAL,
        "start_minutes_late": constants.LATE_ARRIVAL_START,
        "end_minutes_late": constants.LATE_ARRIVAL_END,
        "accumulation_count": 1,
        "equivalent_formal_tardies": 1,
    },
]


DISCIPLINARY_RULES = [
    {
        "code": constants.DISCIPLINARY_RULE_FIVE_TARDIES,
        "name": "Administrative Act for 5 Formal Tardies",
        "description": (
            "5 or more formal tardies in a month raise 1 administrative act "
            "with a 1-day unpaid suspension."
        ),
        "trigger_type": DisciplinaryTriggerType.FORMAL_TARDIES,
        "trigger_count": 5,
        "period_days": constants.PERIOD_DAYS_TARDIES,
        "action_type": DisciplinaryActionType.ADMINISTRATIVE_ACT,
        "suspension_days": 1,
        "affects_salary": True,
    },
    {
        "code": constants.DISCIPLINARY_RULE_THREE_ACTS,
        "name": "Termination for 3 Administrative Acts",
        "description": "Three administrative acts within 90 days result in termination.",
        "trigger_type": DisciplinaryTriggerType.ADMINISTRATIVE_ACTS,
        "trigger_count": 3,
        "period_days": constants.PERIOD_DAYS_ACTS,
        "action_type": DisciplinaryActionType.TERMINATION,
        "suspension_days": None,
        "affects_salary": True,
    },
]

# (code, absences, suspension days); None days means termination
_ABSENCE_LADDER = [
    (constants.DISCIPLINARY_RULE_ONE_ABSENCE, 1, 1),
    (constants.DISCIPLINARY_RULE_TWO_ABSENCES, 2, 2),
    (constants.DISCIPLINARY_RULE_THREE_ABSENCES, 3, 3),
    (constants.DISCIPLINARY_RULE_FOUR_ABSENCES, 4, None),
]

for _code, _count, _days in _ABSENCE_LADDER:
    plural = "s" if _count > 1 else ""
    DISCIPLINARY_RULES.append({
        "code": _code,
        "name": (
            f"Termination for {_count}+ Unjustified Absences" if _days is None
            else f"Suspension for {_count} Unjustified Absence{plural}"
        ),
        "description": (
            f"{_count} unjustified absence{plural}: "
            + ("contract termination." if _days is None else f"{_days}-day unpaid suspension.")
        ),
        "trigger_type": DisciplinaryTriggerType.UNJUSTIFIED_ABSENCES,
        "trigger_count": _count,
        "period_days": constants.PERIOD_DAYS_ABSENCES,
        "action_type": DisciplinaryActionType.TERMINATION if _days is None else DisciplinaryActionType.SUSPENSION,
        "suspension_days": _days,
        "affects_salary": True,
    })


def seed_reference_data(db: Session) -> dict:
    """
    Insert any missing tardiness and disciplinary rules

    Existing rules (matched by code) are left untouched, so the function can
    be re-run safely after rules have been tuned.

    Returns:
        Dict with the number of tardiness and disciplinary rules created
    """
    created = {"tardiness_rules": 0, "disciplinary_rules": 0}

    existing_tardiness = {code for (code,) in db.query(TardinessRule.code).all()}
    for data in TARDINESS_RULES:
        if data["code"] in existing_tardiness:
            continue
        db.add(TardinessRule(is_active=True, **data))
        created["tardiness_rules"] += 1

    existing_disciplinary = {code for (code,) in db.query(DisciplinaryActionRule.code).all()}
    for data in DISCIPLINARY_RULES:
        if data["code"] in existing_disciplinary:
            continue
        db.add(DisciplinaryActionRule(requires_approval=True, is_active=True, **data))
        created["disciplinary_rules"] += 1

    db.commit()
    logger.info(
        "reference data seeded: tardiness_rules=%s disciplinary_rules=%s",
        created["tardiness_rules"], created["disciplinary_rules"],
    )
    return created
