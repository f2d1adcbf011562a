from __future__ import annotations

import logging
from typing import Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import DomainError
from storefront.core.mail import send_mail
from storefront.core.settings import settings
from storefront.core.tasks import defer
from storefront.core.templating import render_to_string
from storefront.member.models import Member
from storefront.product.models import Product, StockAlert

"""
Product Agent.

Rôle (fonctionnel) :
- Regroupe les actions à effets de bord autour d’un produit :
  - restock(quantity) : réassort ; si le produit était en rupture, prévient chaque membre
    actif abonné (1 mail par membre) puis supprime les alertes du produit.
  - subscribe(member) : abonnement au retour en stock (idempotent, y compris entre
    deux requêtes concurrentes grâce à la contrainte unique membre/produit).
  - publish() / unpublish() : visibilité dans le catalogue.

Règles :
- quantity <= 0 -> DomainError INVALID_QUANTITY (422).
- subscribe : membre inactif -> MEMBER_INACTIVE ; produit en stock -> ALREADY_IN_STOCK (409).
- Les mails sont envoyés après le commit (jamais de notification pour un état non persisté).
- restock incrémente le stock en SQL : deux réassorts simultanés s’additionnent et un
  seul d’entre eux notifie les abonnés.
"""

log = logging.getLogger("storefront.product")


class ProductAgent:

    def __init__(
        self,
        product: Product,
        db: AsyncSession,
        background: Optional[BackgroundTasks] = None,
    ) -> None:
        self.product = product
        self.db = db
        self.background = background

    async def restock(self, quantity: int) -> int:
        """Ajoute `quantity` au stock. Retourne le nombre de membres notifiés."""
        if quantity <= 0:
            raise DomainError(
                "INVALID_QUANTITY",
                "La quantité doit être strictement positive",
                status=422,
                details={"quantity": quantity},
            )

        product_id = self.product.id
        recipients: list[Member] = []

        # Incrément atomique : seule l’écriture qui fait passer le stock de 0 à >0 notifie.
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock <= 0)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        was_out_of_stock = result.rowcount == 1

        if was_out_of_stock:
            alerts = await StockAlert.objects.for_product(self.product).pending().oldest_first().all(self.db)
            recipients = [alert.member for alert in alerts]
            await self.db.execute(delete(StockAlert).where(StockAlert.product_id == product_id))
        else:
            await self.db.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(stock=Product.stock + quantity)
                .execution_options(synchronize_session=False)
            )

        await self.db.commit()
        await self.db.refresh(self.product)

        subject = f"{self.product.name} est de retour en stock"
        for member in recipients:
            body = render_to_string(
                "mail/back_in_stock.txt",
                {"member": member, "product": self.product, "app_name": settings.APP_NAME},
            )
            await defer(self.background, send_mail, subject, body, [member.email])

        log.info(
            "product_restocked",
            extra={
                "event": "product_restocked",
                "product_id": str(self.product.id),
                "count": len(recipients),
            },
        )
        return len(recipients)

    async def subscribe(self, member: Member) -> Tuple[StockAlert, bool]:
        """Crée (ou retrouve) l’alerte de retour en stock. Retourne (alerte, créée)."""
        if not member.is_active:
            raise DomainError("MEMBER_INACTIVE", "Ce membre est inactif")
        if self.product.in_stock:
            raise DomainError("ALREADY_IN_STOCK", "Ce produit est déjà disponible")

        member_id, product_id = member.id, self.product.id
        existing = await StockAlert.objects.filter_by(member_id=member_id, product_id=product_id).first(self.db)
        if existing is not None:
            return existing, False

        alert = StockAlert(member=member, product=self.product)
        self.db.add(alert)
        try:
            await self.db.commit()
        except IntegrityError:
            # Abonnement concurrent déjà commité : on renvoie celui-là.
            await self.db.rollback()
            existing = await StockAlert.objects.filter_by(member_id=member_id, product_id=product_id).first(self.db)
            if existing is None:
                raise
            await self.db.refresh(self.product)
            await self.db.refresh(member)
            return existing, False

        log.info(
            "stock_alert_created",
            extra={"event": "stock_alert_created", "product_id": str(product_id), "member_id": str(member_id)},
        )
        return alert, True

    async def _set_published(self, value: bool) -> Product:
        if self.product.is_published != value:
            self.product.is_published = value
            await self.db.commit()
            await self.db.refresh(self.product)
            log.info(
                "product_published" if value else "product_unpublished",
                extra={"event": "product_visibility", "product_id": str(self.product.id)},
            )
        return self.product

    async def publish(self) -> Product:
        return await self._set_published(True)

    async def unpublish(self) -> Product:
        return await self._set_published(False)
