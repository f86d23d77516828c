from typing import List

ACCESS_DASHBOARD = "access_dashboard"
MANAGE_COURSES = "manage_courses"
MANAGE_CONTENTS = "manage_contents"
MANAGE_USERS = "manage_users"

ROLE_PERMISSIONS = {
    "admin": [ACCESS_DASHBOARD, MANAGE_COURSES, MANAGE_CONTENTS, MANAGE_USERS],
    "authorized": [ACCESS_DASHBOARD, MANAGE_COURSES, MANAGE_CONTENTS],
    "regular": [ACCESS_DASHBOARD],
}

DEFAULT_ROLE = "regular"


def permissions_for(role: str) -> List[str]:
    """Flags granted to a role; unknown roles get nothing"""
    return list(ROLE_PERMISSIONS.get(role or "", []))


def has_permission(role: str, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role or "", [])
