"""Open-session registry: lookup, org scoping and idle eviction."""

import pytest

from reportstudio.middleware.exceptions import ResourceNotFoundError
from reportstudio.services.registry import WizardRegistry

IDLE = 600.0


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def idle_registry(fake_store, clock):
    return WizardRegistry(fake_store, idle_seconds=IDLE, clock=clock)


@pytest.mark.unit
class TestLookup:
    def test_get_is_org_scoped(self, idle_registry):
        wizard = idle_registry.open("org-1")
        assert idle_registry.get(wizard.session_id, "org-1") is wizard
        with pytest.raises(ResourceNotFoundError):
            idle_registry.get(wizard.session_id, "org-2")

    def test_discard(self, idle_registry):
        wizard = idle_registry.open("org-1")
        idle_registry.discard(wizard.session_id)
        assert len(idle_registry) == 0


@pytest.mark.unit
@pytest.mark.asyncio
class TestIdleEviction:
    async def test_abandoned_sessions_are_evicted(self, idle_registry, clock):
        for _ in range(50):
            idle_registry.open("org-1")
        await idle_registry.autosave_all()
        assert len(idle_registry) == 50

        clock.now += IDLE + 1
        await idle_registry.autosave_all()
        assert len(idle_registry) == 0

    async def test_activity_keeps_session_open(self, idle_registry, clock):
        active = idle_registry.open("org-1")
        idle_registry.open("org-1")
        clock.now += IDLE - 10
        idle_registry.get(active.session_id, "org-1")
        clock.now += 20
        await idle_registry.autosave_all()
        assert len(idle_registry) == 1
        assert idle_registry.get(active.session_id, "org-1") is active

    async def test_idle_edits_are_saved_before_eviction(
        self, idle_registry, clock, fake_store, setup_payload,
    ):
        wizard = idle_registry.open("org-1")
        wizard.update(setup_payload)
        clock.now += IDLE + 1

        assert await idle_registry.autosave_all() == 1
        assert len(idle_registry) == 0
        assert fake_store.rows[wizard.autosave.draft_id]["title"] == setup_payload["title"]

    async def test_unsaved_edits_hold_the_session(self, make_store, clock, setup_payload):
        store = make_store(fail=True)
        registry = WizardRegistry(store, idle_seconds=IDLE, clock=clock)
        wizard = registry.open("org-1")
        wizard.update(setup_payload)
        clock.now += IDLE + 1

        assert await registry.autosave_all() == 0
        assert len(registry) == 1

        store.fail = False
        assert await registry.autosave_all() == 1
        assert len(registry) == 0

    async def test_untitled_edits_do_not_hold_the_session(self, idle_registry, clock):
        wizard = idle_registry.open("org-1")
        wizard.update({"language": "hindi"})
        clock.now += IDLE + 1
        await idle_registry.autosave_all()
        assert len(idle_registry) == 0
