from __future__ import annotations

import logging
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import DomainError
from storefront.core.mail import send_mail
from storefront.core.settings import settings
from storefront.core.tasks import defer
from storefront.core.templating import render_to_string
from storefront.member.models import Member
from storefront.product.models import StockAlert

"""
Member Agent.

Rôle (fonctionnel) :
- Regroupe les actions à effets de bord sur un membre : mails, modifications
  d’objets liés (alertes de stock), changements d’état.
- Les vues appellent l’agent au lieu de dérouler elles-mêmes la logique ;
  le modèle reste limité à ses colonnes et propriétés.

Actions :
- welcome()     : mail de bienvenue.
- deactivate()  : désactive le membre, supprime ses alertes de stock, mail d’au revoir.
- reactivate()  : réactive un membre inactif.

Notes :
- Les mails passent par core.tasks.defer : envoyés après la réponse HTTP si un
  BackgroundTasks est fourni (settings.MAIL_DEFERRED), sinon immédiatement.
"""

log = logging.getLogger("storefront.member")


class MemberAgent:

    def __init__(
        self,
        member: Member,
        db: AsyncSession,
        background: Optional[BackgroundTasks] = None,
    ) -> None:
        self.member = member
        self.db = db
        self.background = background

    def _context(self, **extra) -> dict:
        context = {"member": self.member, "app_name": settings.APP_NAME}
        context.update(extra)
        return context

    async def _notify(self, subject: str, template_name: str, **extra) -> bool:
        body = render_to_string(template_name, self._context(**extra))
        return await defer(self.background, send_mail, subject, body, [self.member.email])

    async def welcome(self) -> bool:
        """Envoie le mail de bienvenue. Retourne True si l’envoi est différé."""
        deferred = await self._notify(f"Bienvenue sur {settings.APP_NAME}", "mail/welcome.txt")
        log.info(
            "member_welcomed",
            extra={"event": "member_welcomed", "member_id": str(self.member.id)},
        )
        return deferred

    async def deactivate(self, reason: Optional[str] = None) -> int:
        """
        Désactive le membre et nettoie ses alertes de stock.

        Retourne le nombre d’alertes supprimées. DomainError(409) si déjà inactif.
        """
        if not self.member.is_active:
            raise DomainError("ALREADY_INACTIVE", "Ce membre est déjà inactif")

        result = await self.db.execute(delete(StockAlert).where(StockAlert.member_id == self.member.id))
        removed = int(result.rowcount or 0)

        self.member.is_active = False
        await self.db.commit()
        await self.db.refresh(self.member)

        await self._notify(f"Votre compte {settings.APP_NAME} est désactivé", "mail/farewell.txt", reason=reason)

        log.info(
            "member_deactivated",
            extra={"event": "member_deactivated", "member_id": str(self.member.id), "count": removed},
        )
        return removed

    async def reactivate(self) -> Member:
        if self.member.is_active:
            raise DomainError("ALREADY_ACTIVE", "Ce membre est déjà actif")

        self.member.is_active = True
        await self.db.commit()
        await self.db.refresh(self.member)

        log.info(
            "member_reactivated",
            extra={"event": "member_reactivated", "member_id": str(self.member.id)},
        )
        return self.member
