# backend/scripts/seed_demo.py
from __future__ import annotations

import argparse
import random
import sys
from datetime import timedelta
from pathlib import Path

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.orm import sessionmaker

# Permet de lancer le script depuis backend/ sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from storefront.core.settings import settings
from storefront.db.base import Base, utcnow
from storefront.models import Category, Member, Product, StockAlert
from storefront.product.utils import slugify


# ---- Catalogue de démo (boutique de produits de bureau / maison) ----
CATALOGUE = {
    "Papeterie": [
        ("Carnet pointillé A5", 1290),
        ("Stylo plume acier", 2450),
        ("Recharge d’encre bleue", 490),
        ("Agenda semainier", 1890),
        ("Crayons graphite HB (x12)", 650),
    ],
    "Cuisine": [
        ("Théière fonte 1L", 4900),
        ("Moulin à poivre hêtre", 2290),
        ("Planche à découper noyer", 3590),
        ("Tasse grès émaillé", 1450),
    ],
    "Maison": [
        ("Plaid laine mérinos", 8900),
        ("Bougie cire d’abeille", 1690),
        ("Coussin lin lavé", 3290),
        ("Lampe de bureau laiton", 12900),
    ],
    "Jardin": [
        ("Sécateur forgé", 3990),
        ("Arrosoir zinc 5L", 4490),
        ("Gants de jardinage cuir", 1990),
    ],
}

FIRST_NAMES = ["Camille", "Louis", "Chloé", "Hugo", "Inès", "Jules", "Léa", "Nathan", "Manon", "Adam"]
LAST_NAMES = ["Martin", "Bernard", "Dubois", "Thomas", "Robert", "Petit", "Durand", "Leroy", "Moreau", "Simon"]


def seed(reset: bool, members: int, days: int, out_of_stock_ratio: float) -> None:
    engine = create_engine(settings.DATABASE_URL_SYNC, future=True)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    with SessionLocal() as db:
        if reset:
            # ordre inverse des FK
            db.execute(delete(StockAlert))
            db.execute(delete(Product))
            db.execute(delete(Category))
            db.execute(delete(Member))
            db.commit()
            print("✅ Reset done (all demo data deleted).")

        # --- Catégories + produits ---
        products: list[Product] = []
        for category_name, items in CATALOGUE.items():
            slug = slugify(category_name)
            category = db.execute(select(Category).where(Category.slug == slug)).scalar_one_or_none()
            if category is None:
                category = Category(name=category_name, slug=slug)
                db.add(category)

            for name, price_cents in items:
                if db.execute(select(Product.id).where(Product.slug == slugify(name))).first():
                    continue
                stock = 0 if random.random() < out_of_stock_ratio else random.randint(1, 40)
                product = Product(
                    name=name,
                    slug=slugify(name),
                    description=f"{name}, sélectionné par l’équipe {settings.APP_NAME}.",
                    price_cents=price_cents,
                    stock=stock,
                    is_published=random.random() < 0.9,
                    category=category,
                )
                db.add(product)
                products.append(product)

        db.flush()

        # --- Membres (dates d’inscription étalées sur la fenêtre) ---
        created_members: list[Member] = []
        for i in range(members):
            first = random.choice(FIRST_NAMES)
            last = random.choice(LAST_NAMES)
            email = f"{slugify(first)}.{slugify(last)}.{i}@example.com"
            if db.execute(select(Member.id).where(Member.email == email)).first():
                continue
            member = Member(
                first_name=first,
                last_name=last,
                email=email,
                is_active=random.random() < 0.9,
                joined_at=utcnow() - timedelta(days=random.randint(0, days)),
            )
            db.add(member)
            created_members.append(member)

        db.flush()

        # --- Alertes de retour en stock (membres actifs, produits en rupture) ---
        alerts_count = 0
        out_of_stock = [p for p in products if p.stock == 0]
        active_members = [m for m in created_members if m.is_active]
        for product in out_of_stock:
            for member in random.sample(active_members, k=min(len(active_members), random.randint(0, 4))):
                db.add(StockAlert(member=member, product=product))
                alerts_count += 1

        db.commit()

        total_products = db.execute(select(func.count()).select_from(Product)).scalar_one()
        print("✅ Seed terminé.")
        print(f"   - Produits ajoutés: {len(products)} (total: {total_products})")
        print(f"   - Produits en rupture: {len(out_of_stock)}")
        print(f"   - Membres ajoutés: {len(created_members)}")
        print(f"   - Alertes de stock créées: {alerts_count}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="Supprime les données demo avant de reseed")
    parser.add_argument("--members", type=int, default=40, help="Nombre de membres à générer")
    parser.add_argument("--days", type=int, default=120, help="Fenêtre des dates d’inscription (derniers N jours)")
    parser.add_argument("--out-of-stock", type=float, default=0.25, help="Part des produits générés en rupture")
    parser.add_argument("--seed", type=int, default=42, help="Seed RNG pour reproductibilité")
    args = parser.parse_args()

    random.seed(args.seed)
    seed(reset=args.reset, members=args.members, days=args.days, out_of_stock_ratio=args.out_of_stock)


if __name__ == "__main__":
    main()
