from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, Field

from storefront.core.forms import Form, ModelForm
from storefront.db.base import utcnow
from storefront.member.models import Member

"""
Member Forms.

- MemberSignupForm : inscription. post_process normalise l’email (minuscules),
  capitalise prénom / nom et fixe la date d’inscription.
- MemberUpdateForm : mise à jour partielle du prénom / nom.
- DeactivateForm   : motif (optionnel) de désactivation.

L’unicité de l’email est vérifiée par la vue (409 EMAIL_TAKEN) ; le mail de bienvenue
est envoyé par MemberAgent, jamais par le formulaire.
"""


def _capitalize(value: Optional[str]) -> str:
    value = (value or "").strip()
    return value[:1].upper() + value[1:]


class MemberSignupForm(ModelForm):
    orm_model = Member

    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(default="", max_length=80)
    email: EmailStr

    def post_process(self, instance: Member) -> None:
        instance.email = instance.email.strip().lower()
        instance.first_name = _capitalize(instance.first_name)
        instance.last_name = _capitalize(instance.last_name)
        instance.joined_at = utcnow()
        if instance.is_active is None:
            instance.is_active = True


class MemberUpdateForm(ModelForm):
    orm_model = Member
    partial = True

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)

    def post_process(self, instance: Member) -> None:
        instance.first_name = _capitalize(instance.first_name)
        instance.last_name = _capitalize(instance.last_name)


class DeactivateForm(Form):
    reason: Optional[str] = Field(default=None, max_length=500)
