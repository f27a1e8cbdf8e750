"""
Role definitions for the ADP Works Portal.

Approval chain (in order):
1. engineer     - Originator, creates works and forwards a batch
2. Commissioner - first review, approves then forwards to EEPH
3. eeph         - Executive Engineer (Public Health)
4. seph         - Superintending Engineer (Public Health)
5. encph        - Engineer-in-Chief (Public Health)
6. cdma         - Commissioner & Director of Municipal Administration, final approver
"""

# Role Constants (session wire values)
ROLE_ENGINEER = 'engineer'
ROLE_COMMISSIONER = 'Commissioner'
ROLE_EEPH = 'eeph'
ROLE_SEPH = 'seph'
ROLE_ENCPH = 'encph'
ROLE_CDMA = 'cdma'

# All roles in chain order (originator first)
ALL_ROLES = [
    ROLE_ENGINEER,
    ROLE_COMMISSIONER,
    ROLE_EEPH,
    ROLE_SEPH,
    ROLE_ENCPH,
    ROLE_CDMA,
]

# Reviewer roles, excluding the originator
REVIEWER_ROLES = ALL_ROLES[1:]

# Label written into status text, rejectedBy and forwardedTo.section
ROLE_LABELS = {
    ROLE_ENGINEER: 'Engineer',
    ROLE_COMMISSIONER: 'Commissioner',
    ROLE_EEPH: 'EEPH',
    ROLE_SEPH: 'SEPH',
    ROLE_ENCPH: 'ENCPH',
    ROLE_CDMA: 'CDMA',
}

# Role display names
ROLE_NAMES = {
    ROLE_ENGINEER: 'Municipal Engineer',
    ROLE_COMMISSIONER: 'Municipal Commissioner',
    ROLE_EEPH: 'Executive Engineer (Public Health)',
    ROLE_SEPH: 'Superintending Engineer (Public Health)',
    ROLE_ENCPH: 'Engineer-in-Chief (Public Health)',
    ROLE_CDMA: 'Commissioner & Director of Municipal Administration',
}


def normalize_role(role: str) -> str:
    """Map a role string (any case) onto its canonical constant, or None."""
    if not role:
        return None
    wanted = role.strip().lower()
    for r in ALL_ROLES:
        if r.lower() == wanted:
            return r
    return None


def is_valid_role(role: str) -> bool:
    """Check if role is one of the fixed session roles."""
    return role in ALL_ROLES


def get_role_label(role: str) -> str:
    """Get the label used in status strings for a role."""
    return ROLE_LABELS.get(role, role)


def get_role_display_name(role: str) -> str:
    """Get display name for a role."""
    return ROLE_NAMES.get(role, role)


def next_role(role: str):
    """Role that receives a forward from `role`; None for the final approver."""
    if role not in ALL_ROLES:
        return None
    idx = ALL_ROLES.index(role)
    if idx + 1 >= len(ALL_ROLES):
        return None
    return ALL_ROLES[idx + 1]


def is_originator(user: dict) -> bool:
    """Check if session user is the engineer."""
    return bool(user) and user.get('role') == ROLE_ENGINEER


def is_final_approver(user: dict) -> bool:
    """Check if session user is CDMA."""
    return bool(user) and user.get('role') == ROLE_CDMA


def session_actor(user: dict) -> dict:
    """Who acted, as recorded on a work: username plus the role's label."""
    return {'username': user['username'], 'role': get_role_label(user['role'])}
