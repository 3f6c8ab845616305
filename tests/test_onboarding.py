from sqlalchemy import insert

from app.models.onboarding_progress import OnboardingProgress
from app.models.profile import Profile
from app.services import onboarding
from app.utils.timestamps import utcnow
from tests.conftest import USER_ID


def test_empty_progress_starts_at_first_step(client, user_headers) -> None:
    response = client.get("/functions/onboarding/progress", headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"progress": [], "last_completed_step": -1, "next_step": 0}


def test_completing_steps_advances_next_step(client, user_headers) -> None:
    client.put("/functions/onboarding/progress/0", json={"step_data": {"plan": "Starter", "isTrial": True}}, headers=user_headers)
    response = client.put("/functions/onboarding/progress/1", json={"step_data": {"name": "Docs"}}, headers=user_headers)

    body = response.json()
    assert [p["step_id"] for p in body["progress"]] == [0, 1]
    assert body["progress"][0]["step_data"] == {"plan": "Starter", "is_trial": True}
    assert body["last_completed_step"] == 1
    assert body["next_step"] == 2


def test_completing_a_step_twice_overwrites_it(client, db_session, user_headers) -> None:
    client.put("/functions/onboarding/progress/2", json={"step_data": {"name": "Old"}}, headers=user_headers)
    client.put("/functions/onboarding/progress/2", json={"step_data": {"name": "New"}}, headers=user_headers)

    rows = db_session.query(OnboardingProgress).filter(OnboardingProgress.user_id == USER_ID).all()
    assert len(rows) == 1
    assert rows[0].step_data == {"name": "New"}


def test_last_step_marks_profile_onboarded(client, db_session, user_headers) -> None:
    response = client.put(
        "/functions/onboarding/progress/3",
        json={"step_data": {"integrations": ["website"], "websiteUrl": "https://example.com"}},
        headers=user_headers,
    )

    assert response.json()["next_step"] == 3
    profile = db_session.query(Profile).filter(Profile.id == USER_ID).one()
    assert profile.onboarding_completed is True


def test_reset_clears_progress(client, db_session, user_headers) -> None:
    client.put("/functions/onboarding/progress/0", json={}, headers=user_headers)

    response = client.delete("/functions/onboarding/progress", headers=user_headers)

    assert response.json()["last_completed_step"] == -1
    assert db_session.query(OnboardingProgress).count() == 0


def test_step_data_variants() -> None:
    plan = onboarding.parse_step_data(0, {"plan": "Professional", "priceId": "price_123"})
    assert isinstance(plan, onboarding.PlanStepData)
    assert plan.price_id == "price_123"

    bot = onboarding.parse_step_data(2, {"name": "Helper", "primaryColor": "#000"})
    assert isinstance(bot, onboarding.BotSetupStepData)
    assert bot.kind == "bot_setup"


def test_camel_case_and_field_names_are_both_accepted() -> None:
    camel = onboarding.parse_step_data(3, {"integrations": ["slack"], "websiteUrl": "https://example.com"})
    snake = onboarding.parse_step_data(3, {"integrations": ["slack"], "website_url": "https://example.com"})

    assert camel == snake
    assert onboarding.dump_step_data(camel) == {"integrations": ["slack"], "website_url": "https://example.com"}


def test_wrongly_typed_step_data_is_kept_raw() -> None:
    payload = {"fileCount": "lots", "name": {"nested": 1}}
    kb = onboarding.parse_step_data(1, payload)
    assert isinstance(kb, onboarding.RawStepData)
    assert onboarding.dump_step_data(kb) == payload

    plan = onboarding.parse_step_data(0, {"isTrial": "no"})
    assert isinstance(plan, onboarding.RawStepData)


def test_concurrent_insert_of_same_step_becomes_update(db_session, monkeypatch) -> None:
    real_find_entry = onboarding._find_entry
    calls = []

    def find_after_other_request_inserted(db, user_id, step_id):
        calls.append(step_id)
        if len(calls) == 1:
            # Another request for the same step commits between our read and our insert
            db.execute(insert(OnboardingProgress).values(
                user_id=user_id, step_id=step_id, step_data={"name": "Other tab"}, completed_at=utcnow(),
            ))
            db.commit()
            return None
        return real_find_entry(db, user_id, step_id)

    monkeypatch.setattr(onboarding, "_find_entry", find_after_other_request_inserted)

    entry = onboarding.mark_step_complete(db_session, USER_ID, 1, {"name": "Docs"})

    assert len(calls) == 2
    rows = db_session.query(OnboardingProgress).filter(OnboardingProgress.user_id == USER_ID).all()
    assert len(rows) == 1
    assert rows[0].id == entry.id
    assert rows[0].step_data == {"name": "Docs", "file_count": 0}


def test_unknown_shapes_fall_back_to_raw() -> None:
    unknown_key = onboarding.parse_step_data(0, {"color": "blue"})
    assert isinstance(unknown_key, onboarding.RawStepData)
    assert onboarding.dump_step_data(unknown_key) == {"color": "blue"}

    unknown_step = onboarding.parse_step_data(7, {"anything": 1})
    assert isinstance(unknown_step, onboarding.RawStepData)
