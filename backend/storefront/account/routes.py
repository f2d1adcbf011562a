from fastapi import APIRouter

from storefront.account.views import (
    DeactivateView,
    MemberDetailView,
    MemberListView,
    MemberUpdateView,
    ReactivateView,
    SignupView,
)
from storefront.api.deps import AdminAuthDep

"""
Account Routes.

Table de routage de l’app : chemin -> vue “classe”.
La liste des membres est réservée à l’administration (API key).
"""

router = APIRouter(prefix="/account", tags=["account"])

SignupView.register(router, "/signup", name="member_signup")
MemberListView.register(router, "/members", name="member_list", dependencies=[AdminAuthDep])
MemberDetailView.register(router, "/members/{member_id}", name="member_detail")
MemberUpdateView.register(router, "/members/{member_id}", name="member_update")
DeactivateView.register(router, "/members/{member_id}/deactivate", name="member_deactivate")
ReactivateView.register(router, "/members/{member_id}/reactivate", name="member_reactivate")
