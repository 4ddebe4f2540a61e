from datetime import datetime, timedelta, timezone

import pytest

from custom_components.moodflow.errors import (
    CheckInNotFoundError,
    ContactNotFoundError,
    SuggestionNotFoundError,
    SuggestionStateError,
)
from custom_components.moodflow.runtime.contracts import (
    ActionKind,
    ActionSpec,
    CheckIn,
    Contact,
    ExecutionRecord,
    Priority,
    Suggestion,
    SuggestionCategory,
)

T0 = datetime(2024, 5, 6, 9, 0, tzinfo=timezone.utc)


def _suggestion(check_in_id="c1", priority=Priority.MEDIUM, minutes=0, **kwargs):
    return Suggestion(
        check_in_id=check_in_id,
        title=kwargs.pop("title", f"{priority.value}-{minutes}"),
        description="d",
        category=SuggestionCategory.WELLNESS,
        priority=priority,
        actions=(ActionSpec(kind=ActionKind.REMINDER, display_text="Breathe"),),
        created_at=T0 + timedelta(minutes=minutes),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_every_write_is_saved(repository, store):
    await repository.async_insert_check_in(CheckIn(emotion_tags=("sad",), check_in_id="c1"))
    await repository.async_insert_suggestion(_suggestion())
    assert store.async_save.await_count == 2
    saved = store.async_save.await_args.args[0]
    assert saved["check_ins"][0]["check_in_id"] == "c1"
    assert len(saved["suggestions"]) == 1


@pytest.mark.asyncio
async def test_load_restores_journal(repository, store):
    suggestion = _suggestion()
    contact = Contact(name="Sam", phone_number="555-0100")
    store.async_load.return_value = {
        "check_ins": [CheckIn(emotion_tags=("sad",), check_in_id="c1").as_dict()],
        "suggestions": [suggestion.as_dict()],
        "executions": [],
        "contacts": [contact.as_dict()],
    }
    await repository.async_load()
    assert repository.get_check_in("c1").emotion_tags == ("sad",)
    assert repository.get_suggestion(suggestion.suggestion_id) == suggestion
    assert repository.contacts() == [contact]


@pytest.mark.asyncio
async def test_active_suggestions_order_and_limit(repository):
    await repository.async_insert_suggestion(_suggestion(priority=Priority.LOW, minutes=5))
    await repository.async_insert_suggestion(_suggestion(priority=Priority.URGENT, minutes=0))
    await repository.async_insert_suggestion(_suggestion(priority=Priority.MEDIUM, minutes=1))
    await repository.async_insert_suggestion(_suggestion(priority=Priority.MEDIUM, minutes=3))
    dismissed = await repository.async_insert_suggestion(_suggestion(priority=Priority.URGENT, minutes=9))
    await repository.async_dismiss_suggestion(dismissed.suggestion_id)

    titles = [item.title for item in repository.active_suggestions()]
    assert titles == ["urgent-0", "medium-3", "medium-1", "low-5"]
    assert len(repository.active_suggestions(limit=2)) == 2


@pytest.mark.asyncio
async def test_listeners_called_after_commit(repository):
    calls = []
    remove = repository.async_add_listener(lambda: calls.append(True))
    await repository.async_insert_suggestion(_suggestion())
    remove()
    await repository.async_insert_suggestion(_suggestion(minutes=1))
    assert calls == [True]


@pytest.mark.asyncio
async def test_executed_suggestion_is_terminal(repository):
    suggestion = await repository.async_insert_suggestion(_suggestion())
    executed = await repository.async_mark_executed(suggestion.suggestion_id, T0)
    assert executed.is_executed and executed.executed_at == T0
    assert repository.active_suggestions() == []

    with pytest.raises(SuggestionStateError):
        await repository.async_dismiss_suggestion(suggestion.suggestion_id)
    with pytest.raises(SuggestionStateError):
        await repository.async_mark_executed(suggestion.suggestion_id)


@pytest.mark.asyncio
async def test_dismiss_is_idempotent(repository):
    suggestion = await repository.async_insert_suggestion(_suggestion())
    first = await repository.async_dismiss_suggestion(suggestion.suggestion_id)
    second = await repository.async_dismiss_suggestion(suggestion.suggestion_id)
    assert first == second
    assert second.is_dismissed


@pytest.mark.asyncio
async def test_update_rejects_both_flags(repository):
    suggestion = await repository.async_insert_suggestion(_suggestion())
    both = Suggestion.from_dict({**suggestion.as_dict(), "is_executed": True, "is_dismissed": True})
    with pytest.raises(SuggestionStateError):
        await repository.async_update_suggestion(both)


@pytest.mark.asyncio
async def test_unknown_suggestion(repository):
    with pytest.raises(SuggestionNotFoundError):
        await repository.async_dismiss_suggestion("missing")


@pytest.mark.asyncio
async def test_delete_check_in_cascades_to_suggestions(repository):
    await repository.async_insert_check_in(CheckIn(emotion_tags=("sad",), check_in_id="c1"))
    await repository.async_insert_check_in(CheckIn(emotion_tags=("happy",), check_in_id="c2"))
    doomed = await repository.async_insert_suggestion(_suggestion("c1"))
    kept = await repository.async_insert_suggestion(_suggestion("c2", minutes=1))
    await repository.async_insert_execution(
        ExecutionRecord(suggestion_id=doomed.suggestion_id, check_in_id="c1", completion_status="SUCCESS")
    )

    await repository.async_delete_check_in("c1")
    assert repository.get_check_in("c1") is None
    assert repository.get_suggestion(doomed.suggestion_id) is None
    assert repository.suggestions_for_check_in("c2") == [kept]
    assert len(repository.executions_for_suggestion(doomed.suggestion_id)) == 1

    with pytest.raises(CheckInNotFoundError):
        await repository.async_delete_check_in("c1")


@pytest.mark.asyncio
async def test_update_check_in_keeps_id(repository):
    original = await repository.async_insert_check_in(CheckIn(emotion_tags=("sad",), check_in_id="c1"))
    await repository.async_update_check_in(original.edited(("happy",), "better now"))
    stored = repository.get_check_in("c1")
    assert stored.emotion_tags == ("happy",)
    assert stored.timestamp == original.timestamp

    with pytest.raises(CheckInNotFoundError):
        await repository.async_update_check_in(CheckIn(emotion_tags=(), check_in_id="nope"))


@pytest.mark.asyncio
async def test_recent_executions_newest_first(repository):
    for minutes in (1, 3, 2):
        await repository.async_insert_execution(
            ExecutionRecord(
                suggestion_id=f"s{minutes}",
                check_in_id="c1",
                completion_status="SUCCESS",
                executed_at=T0 + timedelta(minutes=minutes),
            )
        )
    assert [r.suggestion_id for r in repository.recent_executions(2)] == ["s3", "s2"]
    assert repository.recent_executions(0) == []


@pytest.mark.asyncio
async def test_frequent_contacts_order(repository):
    never = await repository.async_add_contact(Contact(name="Never", phone_number="1"))
    old = await repository.async_add_contact(Contact(name="Old", phone_number="2"))
    recent = await repository.async_add_contact(Contact(name="Recent", phone_number="3"))
    await repository.async_add_contact(Contact(name="Rare", phone_number="4", is_frequent=False))
    await repository.async_touch_contact(old.contact_id, T0)
    await repository.async_touch_contact(recent.contact_id, T0 + timedelta(days=1))

    assert [c.name for c in repository.frequent_contacts()] == ["Recent", "Old", "Never"]
    assert never.last_contacted_at is None


@pytest.mark.asyncio
async def test_remove_contact(repository):
    contact = await repository.async_add_contact(Contact(name="Sam", phone_number="1"))
    await repository.async_remove_contact(contact.contact_id)
    assert repository.contacts() == []
    with pytest.raises(ContactNotFoundError):
        await repository.async_remove_contact(contact.contact_id)
