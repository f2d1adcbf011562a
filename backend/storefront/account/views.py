from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from starlette.responses import Response

from storefront.account import templatetags  # noqa: F401  (enregistre les filtres Jinja)
from storefront.core.errors import DomainError
from storefront.core.forms import Form
from storefront.core.views import ActionView, CreateView, DetailView, ListView, UpdateView, bool_param
from storefront.member.agents import MemberAgent
from storefront.member.forms import DeactivateForm, MemberSignupForm, MemberUpdateForm
from storefront.member.models import Member
from storefront.product.models import StockAlert
from storefront.schemas.members import MemberOut

"""
Account Views.

Rôle (fonctionnel) :
- Inscription (MemberSignupForm + mail de bienvenue via MemberAgent).
- Liste (admin), fiche, mise à jour, désactivation / réactivation d’un membre.

Principe :
- Les vues ne font ni requête “à la main” ni envoi de mail :
  Member.objects pour lire, formulaires pour écrire, MemberAgent pour les effets de bord.
"""


class MemberLookupMixin:
    lookup_field = "id"
    lookup_url_kwarg = "member_id"
    lookup_cast = uuid.UUID
    schema = MemberOut

    def get_queryset(self):
        return Member.objects.filter()


class SignupView(CreateView):
    form_class = MemberSignupForm
    schema = MemberOut

    async def form_valid(self, form: MemberSignupForm) -> Response:
        try:
            self.object = await form.save(self.db)
        except IntegrityError:
            await self.db.rollback()
            raise DomainError("EMAIL_TAKEN", "Un compte existe déjà avec cet email") from None

        await self.after_save(self.object)
        return self.json_response(self.serialize(self.object), status_code=self.success_status)

    async def after_save(self, obj: Member) -> None:
        await MemberAgent(obj, self.db, self.background).welcome()


class MemberListView(ListView):
    """Membres (admin) : filtres q (nom / email) et active (true / false)."""

    schema = MemberOut
    template_name = "account/member_list.html"

    def get_queryset(self):
        qs = Member.objects.search(self.request.query_params.get("q"))
        active = bool_param(self.request, "active")
        if active is True:
            qs = qs.active()
        elif active is False:
            qs = qs.inactive()
        return qs.newest_first()


class MemberDetailView(MemberLookupMixin, DetailView):
    template_name = "account/member_detail.html"

    async def get_stock_alerts(self) -> list[StockAlert]:
        return await StockAlert.objects.for_member(self.object).oldest_first().all(self.db)

    async def get_json_data(self) -> Any:
        data = self.serialize(self.object)
        data["stock_alerts"] = [alert.product.slug for alert in await self.get_stock_alerts()]
        return data

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["member"] = self.object
        return context

    async def get(self) -> Response:
        self.object = await self.get_object()
        if self.wants_html():
            alerts = await self.get_stock_alerts()
            return self.render_to_response(self.get_context_data(object=self.object, stock_alerts=alerts))
        return self.json_response(await self.get_json_data())


class MemberUpdateView(MemberLookupMixin, UpdateView):
    form_class = MemberUpdateForm


class DeactivateView(MemberLookupMixin, ActionView):
    form_class = DeactivateForm

    async def perform(self, form: Optional[Form]) -> Any:
        removed = await MemberAgent(self.object, self.db, self.background).deactivate(form.reason)
        return {"member": self.serialize(self.object), "alerts_removed": removed}


class ReactivateView(MemberLookupMixin, ActionView):

    async def perform(self, form: Optional[Form]) -> Any:
        member = await MemberAgent(self.object, self.db, self.background).reactivate()
        return {"member": self.serialize(member)}
