# This project was developed with assistance from AI tools.
"""Persona factories for tests.

Fixed user and org IDs keep fixtures consistent across tests. Two orgs exist
so cross-org isolation can be exercised.
"""

from db.enums import UserRole

from src.schemas.auth import OrgContext, UserContext

ORG_ID = "org-summit"
OTHER_ORG_ID = "org-harbor"

ADMIN_USER_ID = "admin-user"
PROCESSOR_USER_ID = "dana-processor"
LO_USER_ID = "james-torres-lo"
OTHER_ADMIN_USER_ID = "harbor-admin"


def admin() -> UserContext:
    return UserContext(
        user_id=ADMIN_USER_ID,
        role=UserRole.ADMIN,
        email="admin@summit-cap.com",
        name="Admin User",
        org_id=ORG_ID,
    )


def processor() -> UserContext:
    return UserContext(
        user_id=PROCESSOR_USER_ID,
        role=UserRole.PROCESSOR,
        email="dana@summit-cap.com",
        name="Dana Reyes",
        org_id=ORG_ID,
    )


def loan_officer() -> UserContext:
    return UserContext(
        user_id=LO_USER_ID,
        role=UserRole.LOAN_OFFICER,
        email="james@summit-cap.com",
        name="James Torres",
        org_id=ORG_ID,
    )


def other_org_admin() -> UserContext:
    return UserContext(
        user_id=OTHER_ADMIN_USER_ID,
        role=UserRole.ADMIN,
        email="admin@harbor-lending.com",
        name="Harbor Admin",
        org_id=OTHER_ORG_ID,
    )


def org_ctx(user: UserContext | None = None) -> OrgContext:
    return OrgContext.from_user(user or admin())
