from datetime import timedelta

import pytest
from fastapi import BackgroundTasks
from pydantic import ValidationError

from storefront.core.errors import DomainError
from storefront.db.base import utcnow
from storefront.member.agents import MemberAgent
from storefront.member.forms import DeactivateForm, MemberSignupForm, MemberUpdateForm
from storefront.models import Member, StockAlert


# --- Modèle ---

def test_computed_properties():
    member = Member(first_name="Alice", last_name="", email="alice@example.com", joined_at=utcnow())
    assert member.full_name == "Alice"
    assert member.initials == "A"
    assert member.is_new

    member.last_name = "Martin"
    assert member.full_name == "Alice Martin"
    assert member.initials == "AM"


async def test_is_new_expires_after_configured_days(db, make_member):
    veteran = await make_member(days_ago=90)
    assert not veteran.is_new


async def test_email_is_lowercased_by_signal(db):
    member = Member(first_name="Bob", email="  Bob@Example.COM ")
    db.add(member)
    await db.commit()
    await db.refresh(member)
    assert member.email == "bob@example.com"

    member.email = "BOB@EXAMPLE.ORG"
    await db.commit()
    await db.refresh(member)
    assert member.email == "bob@example.org"


# --- QuerySet ---

async def test_search_is_case_insensitive_on_names_and_email(db, make_member):
    await make_member(email="alice@example.com", first_name="Alice", last_name="Martin")
    await make_member(email="bob@shop.io", first_name="Bob", last_name="Dubois")

    assert [m.first_name for m in await Member.objects.search("MART").all(db)] == ["Alice"]
    assert [m.first_name for m in await Member.objects.search("shop.IO").all(db)] == ["Bob"]
    assert await Member.objects.search("   ").count(db) == 2


async def test_search_treats_like_wildcards_literally(db, make_member):
    await make_member(email="alice@example.com", first_name="Alice")
    await make_member(email="bob_dubois@shop.io", first_name="Bob", last_name="Dubois")

    assert await Member.objects.search("%").count(db) == 0
    assert [m.first_name for m in await Member.objects.search("_").all(db)] == ["Bob"]
    assert await Member.objects.search("a_i").count(db) == 0



async def test_by_email_joined_since_and_ordering(db, make_member):
    await make_member(email="old@example.com", days_ago=40)
    await make_member(email="new@example.com", days_ago=1)

    assert (await Member.objects.by_email(" NEW@example.com").first(db)).email == "new@example.com"

    recent = await Member.objects.joined_since(utcnow() - timedelta(days=7)).all(db)
    assert [m.email for m in recent] == ["new@example.com"]

    ordered = await Member.objects.newest_first().all(db)
    assert [m.email for m in ordered] == ["new@example.com", "old@example.com"]


# --- Formulaires ---

async def test_signup_form_normalizes_before_save(db):
    form = MemberSignupForm(first_name="  alice ", last_name="martin", email="Alice@Example.com")
    member = await form.save(db)

    assert member.id is not None
    assert member.first_name == "Alice"
    assert member.last_name == "Martin"
    assert member.email == "alice@example.com"
    assert member.is_active is True
    assert member.joined_at is not None


@pytest.mark.parametrize(
    "payload",
    [
        {"first_name": "   ", "email": "a@example.com"},
        {"first_name": "Alice", "email": "not-an-email"},
        {"first_name": "Alice", "email": "a@example.com", "is_admin": True},
    ],
)
def test_signup_form_rejects_invalid_payloads(payload):
    with pytest.raises(ValidationError):
        MemberSignupForm.model_validate(payload)


async def test_update_form_only_touches_sent_fields(db, make_member):
    member = await make_member(first_name="Alice", last_name="Martin")
    form = MemberUpdateForm.model_validate({"last_name": "durand"})
    await form.save(db, instance=member)

    assert member.first_name == "Alice"
    assert member.last_name == "Durand"


def test_deactivate_form_limits_reason_length():
    assert DeactivateForm().reason is None
    with pytest.raises(ValidationError):
        DeactivateForm(reason="x" * 501)


# --- Agent ---

async def test_welcome_sends_immediately_without_background(db, make_member, outbox):
    member = await make_member()
    deferred = await MemberAgent(member, db).welcome()

    assert deferred is False
    assert len(outbox) == 1
    assert outbox[0].to == ["alice@example.com"]
    assert "Bonjour Alice" in outbox[0].body


async def test_welcome_is_deferred_with_background_tasks(db, make_member, outbox):
    member = await make_member()
    background = BackgroundTasks()
    deferred = await MemberAgent(member, db, background).welcome()

    assert deferred is True
    assert outbox == []
    assert len(background.tasks) == 1


async def test_deactivate_removes_alerts_and_says_goodbye(db, make_member, make_product, make_alert, outbox):
    member = await make_member()
    for name in ("Stylo", "Carnet"):
        await make_alert(member, await make_product(name=name, stock=0))

    removed = await MemberAgent(member, db).deactivate(reason="Départ")

    assert removed == 2
    assert member.is_active is False
    assert await StockAlert.objects.for_member(member).count(db) == 0
    assert len(outbox) == 1
    assert "Motif : Départ" in outbox[0].body


async def test_deactivate_and_reactivate_reject_noop_transitions(db, make_member):
    member = await make_member(is_active=False)

    with pytest.raises(DomainError) as exc:
        await MemberAgent(member, db).deactivate()
    assert exc.value.code == "ALREADY_INACTIVE"
    assert exc.value.status_code == 409

    await MemberAgent(member, db).reactivate()
    assert member.is_active is True

    with pytest.raises(DomainError) as exc:
        await MemberAgent(member, db).reactivate()
    assert exc.value.code == "ALREADY_ACTIVE"
