from __future__ import annotations

import logging

from sqlalchemy import event

from storefront.member.models import Member

"""
Member Signals (listeners ORM SQLAlchemy).

- before_insert / before_update : l’email est toujours stocké en minuscules,
  quel que soit le chemin d’écriture (formulaire, script de seed, agent).
- after_insert : trace la création du membre.
"""

log = logging.getLogger("storefront.member.signals")


@event.listens_for(Member, "before_insert")
@event.listens_for(Member, "before_update")
def normalize_email(mapper, connection, target: Member) -> None:
    if target.email:
        target.email = target.email.strip().lower()


@event.listens_for(Member, "after_insert")
def member_created(mapper, connection, target: Member) -> None:
    log.info("member_created", extra={"event": "member_created", "member_id": str(target.id)})
