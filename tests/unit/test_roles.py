"""
Unit tests for adp_portal/roles.py -- role constants and chain navigation.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from __mocks__.fixtures import ENGINEER_USER, COMMISSIONER_USER, EEPH_USER, CDMA_USER

from adp_portal.roles import (
    ROLE_ENGINEER, ROLE_COMMISSIONER, ROLE_EEPH, ROLE_SEPH, ROLE_ENCPH, ROLE_CDMA,
    ALL_ROLES, REVIEWER_ROLES,
    get_role_display_name, get_role_label, is_final_approver, is_originator,
    is_valid_role, next_role, normalize_role, session_actor,
)

pytestmark = pytest.mark.unit


class TestRoleConstants:
    def test_wire_values(self):
        assert ALL_ROLES == ["engineer", "Commissioner", "eeph", "seph", "encph", "cdma"]

    def test_reviewers_exclude_engineer(self):
        assert ROLE_ENGINEER not in REVIEWER_ROLES
        assert len(REVIEWER_ROLES) == 5

    def test_labels(self):
        assert get_role_label(ROLE_EEPH) == "EEPH"
        assert get_role_label(ROLE_COMMISSIONER) == "Commissioner"

    def test_display_name(self):
        assert "Public Health" in get_role_display_name(ROLE_SEPH)


class TestChain:
    def test_next_role(self):
        assert next_role(ROLE_ENGINEER) == ROLE_COMMISSIONER
        assert next_role(ROLE_ENCPH) == ROLE_CDMA
        assert next_role(ROLE_CDMA) is None
        assert next_role("mayor") is None

    def test_engineer_not_reachable_by_forward(self):
        assert ROLE_ENGINEER not in [next_role(role) for role in ALL_ROLES]


class TestRoleHelpers:
    def test_normalize(self):
        assert normalize_role("COMMISSIONER") == ROLE_COMMISSIONER
        assert normalize_role(" Eeph ") == ROLE_EEPH
        assert normalize_role("mayor") is None
        assert normalize_role("") is None

    def test_is_valid_role(self):
        assert is_valid_role("cdma") is True
        assert is_valid_role("CDMA") is False

    def test_session_predicates(self):
        assert is_originator(ENGINEER_USER) is True
        assert is_originator(COMMISSIONER_USER) is False
        assert is_final_approver(CDMA_USER) is True
        assert is_final_approver(None) is False

    def test_session_actor_uses_label(self):
        assert session_actor(EEPH_USER) == {"username": EEPH_USER["username"], "role": "EEPH"}
