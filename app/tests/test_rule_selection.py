"""
Tests for tardiness rule selection
"""
import pytest

from app import constants
from app.core.errors import RuleNotFoundError
from app.models.tardiness import TardinessRule
from app.services.tardiness_service import (
    TardinessRuleRole,
    rule_code_for_role,
    select_rule,
    select_rule_role,
)


@pytest.mark.parametrize(
    "minutes_late,formal,expected",
    [
        (0, 0, None),
        (0, 3, None),
        (1, 0, TardinessRuleRole.NORMAL_LATE_ARRIVAL),
        (15, 0, TardinessRuleRole.NORMAL_LATE_ARRIVAL),
        (1, 1, TardinessRuleRole.POST_FIRST_TARDINESS),
        (15, 4, TardinessRuleRole.POST_FIRST_TARDINESS),
        (16, 0, TardinessRuleRole.DIRECT_TARDINESS),
        (16, 2, TardinessRuleRole.DIRECT_TARDINESS),
        (240, 0, TardinessRuleRole.DIRECT_TARDINESS),
    ],
)
def test_decision_table(minutes_late, formal, expected):
    assert select_rule_role(minutes_late, formal) == expected


def test_roles_map_to_seeded_codes():
    assert rule_code_for_role(TardinessRuleRole.NORMAL_LATE_ARRIVAL) == constants.TARDINESS_RULE_LATE_ARRIVAL
    assert rule_code_for_role(TardinessRuleRole.POST_FIRST_TARDINESS) == constants.TARDINESS_RULE_POST_FIRST_TARDINESS
    assert rule_code_for_role(TardinessRuleRole.DIRECT_TARDINESS) == constants.TARDINESS_RULE_DIRECT_TARDINESS


def test_select_rule_resolves_configured_rule(db, rules):
    role, rule = select_rule(db, 10, 0)
    assert role == TardinessRuleRole.NORMAL_LATE_ARRIVAL
    assert rule.code == constants.TARDINESS_RULE_LATE_ARRIVAL
    assert rule.accumulation_count == 4

    role, rule = select_rule(db, 10, 1)
    assert rule.code == constants.TARDINESS_RULE_POST_FIRST_TARDINESS

    role, rule = select_rule(db, 16, 0)
    assert rule.code == constants.TARDINESS_RULE_DIRECT_TARDINESS


def test_select_rule_on_time_raises(db, rules):
    with pytest.raises(RuleNotFoundError):
        select_rule(db, 0, 0)


def test_select_rule_inactive_rule_raises(db, rules):
    rule = db.query(TardinessRule).filter(TardinessRule.code == constants.TARDINESS_RULE_DIRECT_TARDINESS).first()
    rule.is_active = False
    db.commit()

    with pytest.raises(RuleNotFoundError) as exc_info:
        select_rule(db, 30, 0)
    assert exc_info.value.code == "RULE_NOT_FOUND"
    assert exc_info.value.status_code == 500


def test_select_rule_without_seed_raises(db):
    with pytest.raises(RuleNotFoundError):
        select_rule(db, 5, 0)
