"""HTTP tests: FastAPI app with dependency overrides (no Gemini, no MongoDB)."""
from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from main import app
from src.chat_orchestrator.db import get_optional_repository, get_repository
from src.chat_orchestrator.errors import (
    ProviderOverloaded,
    ProviderRateLimited,
    ProviderUnavailable,
)
from src.chat_orchestrator.llm import get_default_provider
from src.chat_orchestrator.models import Turn
from src.chat_orchestrator.session_store import InMemorySessionStore, get_default_store
from src.chat_orchestrator.tools import ToolRegistry, get_default_registry

from .fakes import FakeRepository, ScriptedProvider, text_response

PREAMBLE = (Turn.user_text("Be Musashi."), Turn.model_text("I am Musashi."))


class RouteTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.provider = ScriptedProvider()
        self.store = InMemorySessionStore(PREAMBLE)
        self.repository = FakeRepository()
        app.dependency_overrides[get_default_provider] = lambda: self.provider
        app.dependency_overrides[get_default_store] = lambda: self.store
        app.dependency_overrides[get_default_registry] = lambda: ToolRegistry([])
        app.dependency_overrides[get_repository] = lambda: self.repository
        app.dependency_overrides[get_optional_repository] = lambda: self.repository
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()


class TestChatRoute(RouteTestCase):
    def test_reply_and_session_id(self) -> None:
        self.provider.responses = [text_response("The way is in training."), text_response("Again.")]
        resp = self.client.post("/chat", json={"message": "Teach me"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["reply"], "The way is in training.")
        self.assertTrue(body["sessionId"])

        again = self.client.post("/chat", json={"message": "More", "sessionId": body["sessionId"]})
        self.assertEqual(again.json()["sessionId"], body["sessionId"])

    def test_prompt_alias_is_accepted(self) -> None:
        self.provider.responses = [text_response("Yes.")]
        resp = self.client.post("/chat", json={"prompt": "Old client"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.provider.calls[0]["turns"][-1], Turn.user_text("Old client"))

    def test_empty_message_is_400_without_remote_call(self) -> None:
        for payload in ({"message": ""}, {}):
            resp = self.client.post("/chat", json=payload)
            self.assertEqual(resp.status_code, 400)
            self.assertIn("error", resp.json())
        self.assertEqual(self.provider.calls, [])

    def test_rate_limit_passthrough(self) -> None:
        self.provider.responses = [ProviderRateLimited("quota")]
        resp = self.client.post("/chat", json={"message": "hi"})
        self.assertEqual(resp.status_code, 429)
        self.assertEqual(resp.json(), {"error": ProviderRateLimited.public_message})

    def test_overload_passthrough(self) -> None:
        self.provider.responses = [ProviderOverloaded("busy")]
        resp = self.client.post("/chat", json={"message": "hi"})
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json(), {"error": ProviderOverloaded.public_message})

    def test_other_provider_failure_hides_details(self) -> None:
        self.provider.responses = [ProviderUnavailable("secret stack detail")]
        resp = self.client.post("/chat", json={"message": "hi"})
        self.assertEqual(resp.status_code, 500)
        self.assertNotIn("secret", resp.text)

    def test_custom_instruction_used_for_user(self) -> None:
        self.repository.preferences["u1"] = "Answer in haiku."
        self.provider.responses = [text_response("Autumn moon rising.")]
        resp = self.client.post("/chat", json={"message": "hi", "userId": "u1"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.provider.calls[0]["system_instruction"], "Answer in haiku.")


class TestHistoryRoutes(RouteTestCase):
    def _save(self, user_id: str = "u1") -> str:
        resp = self.client.post(
            "/api/chat/histories",
            json={
                "sessionId": "s1",
                "botId": "Musashi Miyamoto",
                "userId": user_id,
                "messages": [
                    {"role": "user", "parts": [{"text": "What is strategy?"}]},
                    {"role": "model", "parts": [{"text": "Knowing the enemy and yourself."}]},
                ],
            },
        )
        self.assertEqual(resp.status_code, 201)
        return resp.json()["id"]

    def test_save_and_list(self) -> None:
        first = self._save()
        second = self._save()
        self._save("someone-else")
        resp = self.client.get("/api/chat/histories", params={"userId": "u1"})
        self.assertEqual(resp.status_code, 200)
        records = resp.json()
        self.assertEqual([r["id"] for r in records], [second, first])
        self.assertEqual(records[0]["botId"], "Musashi Miyamoto")
        self.assertEqual(records[0]["messages"][1]["parts"][0]["text"], "Knowing the enemy and yourself.")

    def test_list_requires_user(self) -> None:
        resp = self.client.get("/api/chat/histories")
        self.assertEqual(resp.status_code, 400)

    def test_delete(self) -> None:
        record_id = self._save()
        self.assertEqual(self.client.delete(f"/api/chat/histories/{record_id}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/chat/histories/{record_id}").status_code, 404)

    def test_rename(self) -> None:
        record_id = self._save()
        resp = self.client.put(f"/api/chat/histories/{record_id}", json={"title": "On Strategy"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["title"], "On Strategy")

    def test_rename_requires_title(self) -> None:
        record_id = self._save()
        resp = self.client.put(f"/api/chat/histories/{record_id}", json={"title": "  "})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Title not provided."})

    def test_rename_missing_record(self) -> None:
        resp = self.client.put("/api/chat/histories/ffffffffffffffffffffffff", json={"title": "x"})
        self.assertEqual(resp.status_code, 404)

    def test_title_suggestion(self) -> None:
        record_id = self._save()
        self.provider.title = '"The Way of Strategy"'
        resp = self.client.post(f"/api/chat/histories/{record_id}/title-suggestion")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"suggestedTitle": "The Way of Strategy"})
        self.assertIn("user: What is strategy?", self.provider.prompts[0])
        self.assertIn("model: Knowing the enemy and yourself.", self.provider.prompts[0])


class TestOriginalClientPaths(RouteTestCase):
    def test_save_list_rename_suggest_delete(self) -> None:
        resp = self.client.post(
            "/api/chat/salvar-historico",
            json={
                "sessionId": "s1",
                "botId": "Musashi Miyamoto",
                "userId": "u1",
                "messages": [{"role": "user", "parts": [{"text": "What is the Way?"}]}],
            },
        )
        self.assertEqual(resp.status_code, 201)
        record_id = resp.json()["id"]

        listed = self.client.get("/api/chat/historicos", params={"userId": "u1"}).json()
        self.assertEqual([r["id"] for r in listed], [record_id])

        renamed = self.client.put(f"/api/chat/historicos/{record_id}", json={"titulo": "The Way"})
        self.assertEqual(renamed.status_code, 200)
        self.assertEqual(renamed.json()["title"], "The Way")

        self.provider.title = "Walking the Way"
        suggested = self.client.post(f"/api/chat/historicos/{record_id}/gerar-titulo")
        self.assertEqual(suggested.json(), {"tituloSugerido": "Walking the Way"})

        self.assertEqual(self.client.delete(f"/api/chat/historicos/{record_id}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/chat/historicos/{record_id}").status_code, 404)

    def test_suggest_for_missing_record(self) -> None:
        resp = self.client.post("/api/chat/historicos/ffffffffffffffffffffffff/gerar-titulo")
        self.assertEqual(resp.status_code, 404)


class TestPreferencesRoutes(RouteTestCase):
    def test_roundtrip(self) -> None:
        self.assertIsNone(
            self.client.get("/api/user/preferences", params={"userId": "u1"}).json()["customSystemInstruction"]
        )
        resp = self.client.put(
            "/api/user/preferences",
            params={"userId": "u1"},
            json={"customSystemInstruction": "Speak like a poet."},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["success"])
        got = self.client.get("/api/user/preferences", params={"userId": "u1"}).json()
        self.assertEqual(got["customSystemInstruction"], "Speak like a poet.")

    def test_too_long_is_rejected(self) -> None:
        resp = self.client.put(
            "/api/user/preferences",
            params={"userId": "u1"},
            json={"customSystemInstruction": "x" * 2001},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertNotIn("u1", self.repository.preferences)

    def test_requires_user(self) -> None:
        self.assertEqual(self.client.get("/api/user/preferences").status_code, 400)


if __name__ == "__main__":
    unittest.main()
