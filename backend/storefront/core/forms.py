from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

"""
Core Forms.

Rôle (fonctionnel) :
- Form : schéma Pydantic d’entrée (validation stricte, espaces supprimés).
- ModelForm : formulaire lié à un modèle ORM, capable de créer / mettre à jour une instance.

Hook de post-traitement :
- save() copie les champs validés sur l’instance, puis appelle post_process(instance)
  avant l’écriture en base. C’est l’endroit des ajustements “formulaire” :
  normaliser un email, générer un slug, convertir un prix en centimes…
- Les effets de bord (mails, modifications d’autres objets) n’ont rien à faire ici :
  ils vivent dans les agents.
"""


class Form(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ModelForm(Form):
    """
    Formulaire lié à un modèle ORM.

    Attributs de classe :
    - orm_model : classe ORM cible.
    - exclude_fields : champs du formulaire jamais copiés tels quels sur l’instance.
    - partial : True pour une mise à jour partielle (seuls les champs envoyés et non nuls sont copiés).
    """

    orm_model: ClassVar[Optional[type]] = None
    exclude_fields: ClassVar[Tuple[str, ...]] = ()
    partial: ClassVar[bool] = False

    def cleaned_data(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=self.partial, exclude_none=self.partial)
        return {k: v for k, v in data.items() if k not in self.exclude_fields}

    def post_process(self, instance: Any) -> None:
        """Hook appelé après la copie des champs, avant l’écriture en base."""

    def apply(self, instance: Any) -> Any:
        columns = set(sa_inspect(type(instance)).attrs.keys())
        for name, value in self.cleaned_data().items():
            if name in columns:
                setattr(instance, name, value)
        self.post_process(instance)
        return instance

    async def save(self, db: AsyncSession, instance: Any = None, *, commit: bool = True) -> Any:
        """Crée (ou met à jour) l’instance, applique post_process puis persiste."""
        if instance is None:
            if self.orm_model is None:
                raise TypeError(f"{type(self).__name__}.orm_model n’est pas défini")
            instance = self.orm_model()

        self.apply(instance)
        db.add(instance)

        if commit:
            await db.commit()
            await db.refresh(instance)
        else:
            await db.flush()
        return instance


def form_errors(exc: ValidationError) -> List[Dict[str, str]]:
    """Erreurs Pydantic -> liste simple {field, message} (payload API / templates)."""
    errors: List[Dict[str, str]] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc) or "__all__", "message": err.get("msg", "")})
    return errors
