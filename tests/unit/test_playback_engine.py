# tests/unit/test_playback_engine.py
import asyncio

import pytest

from fridgechef.core.narration import NarrationState
from fridgechef.services.exceptions import NarrationSessionNotFound
from fridgechef.services.narration import ClientPlaybackEngine, NarrationRegistry


def test_speak_hands_out_one_utterance_at_a_time():
    async def scenario():
        engine = ClientPlaybackEngine()
        first = engine.speak("Step 1. A.")
        first_id = engine.current.id
        second = engine.speak("Step 2. B.")
        return engine, first, first_id, second

    engine, first, first_id, second = asyncio.run(scenario())
    assert first.cancelled()
    assert not second.done()
    assert engine.current.text == "Step 2. B."
    assert engine.lookup(first_id) is None


def test_finish_resolves_only_the_current_utterance():
    async def scenario():
        engine = ClientPlaybackEngine()
        fut = engine.speak("Step 1. A.")
        uid = engine.current.id
        assert not engine.finish("someone-else")
        assert engine.finish(uid)
        assert not engine.finish(uid)
        return fut, engine

    fut, engine = asyncio.run(scenario())
    assert fut.done() and fut.result() is None
    assert engine.current is None


def test_paused_utterance_cannot_finish():
    async def scenario():
        engine = ClientPlaybackEngine()
        engine.speak("Step 1. A.")
        engine.pause()
        return engine, engine.finish(engine.current.id)

    engine, finished = asyncio.run(scenario())
    assert finished is False
    assert engine.current.paused


def test_fail_sets_exception():
    async def scenario():
        engine = ClientPlaybackEngine()
        fut = engine.speak("Step 1. A.")
        engine.fail(engine.current.id, "autoplay blocked")
        return fut

    fut = asyncio.run(scenario())
    assert "autoplay blocked" in str(fut.exception())


def test_registry_drives_a_session_end_to_end(recipe_factory):
    async def scenario():
        registry = NarrationRegistry()
        entry = registry.open(recipe_factory(steps=2))
        entry.session.play()
        entry.engine.finish(entry.engine.current.id)
        await asyncio.sleep(0)
        mid = (entry.session.state, entry.session.current_step, entry.engine.current.text)
        entry.engine.finish(entry.engine.current.id)
        await asyncio.sleep(0)
        return registry, entry, mid

    registry, entry, mid = asyncio.run(scenario())
    assert mid == (NarrationState.SPEAKING, 1, "Step 2. Do thing 2.")
    assert entry.session.state is NarrationState.COMPLETED
    assert registry.get(entry.id) is entry


def test_registry_close_stops_and_forgets(recipe_factory):
    async def scenario():
        registry = NarrationRegistry()
        entry = registry.open(recipe_factory())
        entry.session.play()
        fut = entry.engine.current.future
        registry.close(entry.id)
        return registry, entry, fut

    registry, entry, fut = asyncio.run(scenario())
    assert fut.cancelled()
    assert entry.session.state is NarrationState.IDLE
    assert len(registry) == 0
    with pytest.raises(NarrationSessionNotFound):
        registry.get(entry.id)
    with pytest.raises(NarrationSessionNotFound):
        registry.close(entry.id)


def test_each_open_starts_fresh(recipe_factory):
    registry = NarrationRegistry()
    a = registry.open(recipe_factory("A"))
    b = registry.open(recipe_factory("B"))
    assert a.id != b.id
    assert (b.session.speaking, b.session.current_step) == (False, 0)


def test_registry_evicts_oldest_past_the_limit(recipe_factory):
    async def scenario():
        registry = NarrationRegistry(max_sessions=3)
        first = registry.open(recipe_factory("first"))
        first.session.play()
        fut = first.engine.current.future
        entries = [first] + [registry.open(recipe_factory(f"r{i}")) for i in range(49)]
        return registry, entries, fut

    registry, entries, fut = asyncio.run(scenario())
    assert len(registry) == 3
    assert [registry.get(e.id) for e in entries[-3:]] == entries[-3:]
    assert fut.cancelled()
    assert entries[0].session.state is NarrationState.IDLE
    with pytest.raises(NarrationSessionNotFound):
        registry.get(entries[0].id)


def test_same_client_key_replaces_its_session(recipe_factory):
    registry = NarrationRegistry()
    old = registry.open(recipe_factory("A"), client_key="kitchen-tablet")
    other = registry.open(recipe_factory("B"), client_key="phone")
    new = registry.open(recipe_factory("C"), client_key="kitchen-tablet")
    assert len(registry) == 2
    assert registry.get(other.id) is other
    assert registry.get(new.id) is new
    with pytest.raises(NarrationSessionNotFound):
        registry.get(old.id)
    registry.close(new.id)
    again = registry.open(recipe_factory("D"), client_key="kitchen-tablet")
    assert len(registry) == 2 and registry.get(again.id) is again


def test_registry_rejects_zero_limit():
    with pytest.raises(ValueError):
        NarrationRegistry(max_sessions=0)
