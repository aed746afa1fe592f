"""End-to-end tests for the workflow, set and generation endpoints."""

import asyncio

import httpx
import pytest

from app.modules.flashcards.models.flashcards import Flashcard

from .conftest import SCENARIO_CARDS, SCENARIO_TEXT

WORKFLOW = "/v1/flashcards/workflow"
SETS = "/v1/flashcards/sets"


async def _generate(client: httpx.AsyncClient, text: str = SCENARIO_TEXT):
    return await client.post(f"{WORKFLOW}/generate", json={"text": text})


class TestWorkflowEndpoints:
    @pytest.mark.asyncio
    async def test_fresh_session_is_idle(self, api_client) -> None:
        r = await api_client.get(WORKFLOW)

        assert r.status_code == 200
        assert r.json() == {
            "state": "idle",
            "flashcards": [],
            "flipped": {},
            "notice": None,
        }

    @pytest.mark.asyncio
    async def test_generate_review_save(self, api_client, endpoint) -> None:
        r = await _generate(api_client)
        assert r.status_code == 200
        body = r.json()
        assert body["state"] == "reviewing"
        assert body["flashcards"] == SCENARIO_CARDS
        assert body["flipped"] == {}
        assert endpoint.requests[0].content.decode() == SCENARIO_TEXT

        r = await api_client.post(f"{WORKFLOW}/cards/0/flip")
        assert r.status_code == 200
        assert r.json()["flipped"] == {"0": True}

        r = await api_client.post(f"{WORKFLOW}/cards/0/flip")
        assert r.json()["flipped"] == {"0": False}

        r = await api_client.post(f"{WORKFLOW}/save", json={"name": "Set1"})
        assert r.status_code == 201
        assert r.json() == {
            "name": "Set1",
            "message": "Flashcards saved successfully!",
            "sets_url": SETS,
        }

        # Saving ends the session
        r = await api_client.get(WORKFLOW)
        assert r.json()["state"] == "idle"

        r = await api_client.get(SETS)
        assert r.json() == ["Set1"]

        r = await api_client.get(f"{SETS}/Set1")
        assert r.status_code == 200
        assert r.json()["flashcards"] == SCENARIO_CARDS

    @pytest.mark.asyncio
    async def test_duplicate_name_conflict_keeps_review(
        self, api_client, endpoint
    ) -> None:
        await _generate(api_client)
        await api_client.post(f"{WORKFLOW}/save", json={"name": "Set1"})

        endpoint.payload = [{"front": "Different", "back": "Batch"}]
        await _generate(api_client, "Other text.")
        r = await api_client.post(f"{WORKFLOW}/save", json={"name": "Set1"})

        assert r.status_code == 409
        assert r.json()["detail"] == "A flashcard set with this name already exists."

        view = (await api_client.get(WORKFLOW)).json()
        assert view["state"] == "reviewing"
        assert view["flashcards"] == endpoint.payload
        assert view["notice"]["level"] == "error"

        stored = (await api_client.get(f"{SETS}/Set1")).json()
        assert stored["flashcards"] == SCENARIO_CARDS

    @pytest.mark.asyncio
    async def test_generation_error_returns_to_idle(self, api_client, endpoint) -> None:
        endpoint.status_code = 500

        r = await _generate(api_client)

        assert r.status_code == 502
        assert r.json()["detail"] == (
            "An error occurred while generating flashcards. Please try again."
        )
        view = (await api_client.get(WORKFLOW)).json()
        assert view["state"] == "idle"
        assert view["flashcards"] == []

    @pytest.mark.asyncio
    async def test_blank_text_is_rejected_locally(self, api_client, endpoint) -> None:
        r = await _generate(api_client, "   ")

        assert r.status_code == 400
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, api_client) -> None:
        await _generate(api_client)

        r = await api_client.post(f"{WORKFLOW}/save", json={"name": "  "})

        assert r.status_code == 400
        assert r.json()["detail"] == "Please enter a name for your flashcard set."
        assert (await api_client.get(SETS)).json() == []

    @pytest.mark.asyncio
    async def test_save_before_generating_conflicts(self, api_client) -> None:
        r = await api_client.post(f"{WORKFLOW}/save", json={"name": "Set1"})

        assert r.status_code == 409

    @pytest.mark.asyncio
    async def test_flip_out_of_range(self, api_client) -> None:
        await _generate(api_client)

        r = await api_client.post(f"{WORKFLOW}/cards/5/flip")

        assert r.status_code == 404

    @pytest.mark.asyncio
    async def test_flip_without_cards_conflicts(self, api_client) -> None:
        r = await api_client.post(f"{WORKFLOW}/cards/0/flip")

        assert r.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_discards_session(self, api_client) -> None:
        await _generate(api_client)

        r = await api_client.delete(WORKFLOW)

        assert r.status_code == 204
        assert (await api_client.get(WORKFLOW)).json()["state"] == "idle"

    @pytest.mark.asyncio
    async def test_delete_while_generating_conflicts(self, api_client) -> None:
        from main import app
        from app.apis.deps import get_generation_client

        gate = asyncio.Event()
        calls: list[str] = []

        class SlowGenerator:
            async def generate(self, text: str) -> list[Flashcard]:
                calls.append(text)
                await gate.wait()
                return [Flashcard(**card) for card in SCENARIO_CARDS]

        app.dependency_overrides[get_generation_client] = SlowGenerator

        pending = asyncio.create_task(_generate(api_client, "one"))
        for _ in range(100):
            if calls:
                break
            await asyncio.sleep(0)

        r = await api_client.delete(WORKFLOW)
        assert r.status_code == 409
        assert r.json()["detail"] == "Please wait for the current request to finish."

        r = await _generate(api_client, "two")
        assert r.status_code == 409

        gate.set()
        r = await pending
        assert r.status_code == 200
        assert r.json()["state"] == "reviewing"
        assert calls == ["one"]

    @pytest.mark.asyncio
    async def test_flip_does_not_build_a_generation_client(self, api_client) -> None:
        from main import app
        from app.apis.deps import get_generation_client

        await _generate(api_client)

        def unavailable():
            raise AssertionError("generation client requested")

        app.dependency_overrides[get_generation_client] = unavailable

        r = await api_client.post(f"{WORKFLOW}/cards/1/flip")

        assert r.status_code == 200
        assert r.json()["flipped"] == {"1": True}


class TestSetEndpoints:
    @pytest.mark.asyncio
    async def test_missing_set_is_404(self, api_client) -> None:
        r = await api_client.get(f"{SETS}/Nope")

        assert r.status_code == 404

    @pytest.mark.asyncio
    async def test_list_is_empty_for_new_user(self, api_client) -> None:
        r = await api_client.get(SETS)

        assert r.status_code == 200
        assert r.json() == []

    @pytest.mark.asyncio
    async def test_name_with_slash_is_readable(self, api_client) -> None:
        await _generate(api_client)
        r = await api_client.post(f"{WORKFLOW}/save", json={"name": "Bio/Unit1"})
        assert r.status_code == 201

        assert (await api_client.get(SETS)).json() == ["Bio/Unit1"]
        r = await api_client.get(f"{SETS}/Bio/Unit1")

        assert r.status_code == 200
        assert r.json()["name"] == "Bio/Unit1"
        assert r.json()["flashcards"] == SCENARIO_CARDS


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_password_reset_routes_are_not_mounted(self, api_client) -> None:
        r = await api_client.post(
            "/v1/auth/forgot-password", json={"email": "learner@example.com"}
        )

        assert r.status_code == 404


class TestGenerationEndpoint:
    @pytest.mark.asyncio
    async def test_returns_generated_cards(self, api_client, monkeypatch) -> None:
        import app.apis.flashcards.main as flashcards_api

        seen = []

        async def fake_generate(text: str):
            seen.append(text)
            return [Flashcard(**card) for card in SCENARIO_CARDS]

        monkeypatch.setattr(flashcards_api, "generate_flashcards", fake_generate)

        r = await api_client.post(
            "/api/generate",
            content=SCENARIO_TEXT,
            headers={"Content-Type": "text/plain"},
        )

        assert r.status_code == 200
        assert r.json() == SCENARIO_CARDS
        assert seen == [SCENARIO_TEXT]

    @pytest.mark.asyncio
    async def test_empty_body_is_rejected(self, api_client) -> None:
        r = await api_client.post("/api/generate", content=b"  ")

        assert r.status_code == 400

    @pytest.mark.asyncio
    async def test_model_error_is_bad_gateway(self, api_client, monkeypatch) -> None:
        import app.apis.flashcards.main as flashcards_api

        async def broken_generate(text: str):
            raise RuntimeError("model unavailable")

        monkeypatch.setattr(flashcards_api, "generate_flashcards", broken_generate)

        r = await api_client.post("/api/generate", content=SCENARIO_TEXT)

        assert r.status_code == 502
