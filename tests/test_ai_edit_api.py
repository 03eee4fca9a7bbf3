import json
import os
import unittest
from unittest.mock import patch

# Keep API tests deterministic: no provider calls unless a test patches one in.
os.environ.setdefault("AI_EDIT_LLM_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from fastapi.testclient import TestClient

from resume_ai_edit.ai.errors import GENERIC_AI_EDIT_ERROR, TEMPORARY_AI_SERVICE_ERROR, AIEditLLMError
from resume_ai_edit.main import app

from tests.support import ScriptedGenerator, document, edit_decision, request_json, requirement

GENERATOR_TARGET = "resume_ai_edit.services.ai_edit_service.get_structured_generator"
BULLET = "experience[0].bullets[0]"


def _parse_sse(text: str) -> list[tuple[str, dict]]:
    events = []
    for block in text.strip().split("\n\n"):
        lines = block.splitlines()
        name = lines[0].removeprefix("event: ")
        data = json.loads(lines[1].removeprefix("data: "))
        events.append((name, data))
    return events


class AiEditApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        cls.doc = document(experience=[["Built ETL pipelines for finance reporting"]], skills=["Python"])
        cls.requirements = [requirement("Python"), requirement("Airflow", req_id="r2")]

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)

    def test_batch_response_uses_camel_case_and_drops_nulls(self):
        with patch(GENERATOR_TARGET, return_value=None):
            response = self.client.post("/v1/ai-edit", json=request_json(self.requirements, self.doc))
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertEqual(body["operations"], [])
        self.assertNotIn("error", body)
        first, second = body["report"]
        self.assertEqual(first["requirementId"], "r1")
        self.assertEqual(first["status"], "already_mentioned")
        self.assertEqual(first["matchedPath"], "skills[0].name")
        self.assertNotIn("editedPath", first)
        self.assertEqual(second["status"], "unresolved")
        self.assertNotIn("matchedPath", second)

    def test_accepts_resume_data_alias(self):
        payload = request_json(self.requirements, self.doc)
        payload["resumeData"] = payload.pop("document")
        with patch(GENERATOR_TARGET, return_value=None):
            response = self.client.post("/v1/ai-edit", json=payload)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["report"]), 2)

    def test_rejects_empty_requirements(self):
        payload = request_json(self.requirements, self.doc)
        payload["requirements"] = []
        response = self.client.post("/v1/ai-edit", json=payload)
        self.assertEqual(response.status_code, 422)

    def test_rejects_too_many_requirements(self):
        requirements = [requirement(f"Skill {index}", req_id=f"r{index}") for index in range(25)]
        response = self.client.post("/v1/ai-edit", json=request_json(requirements, self.doc))
        self.assertEqual(response.status_code, 422)

    def test_rejects_out_of_range_weight(self):
        payload = request_json(self.requirements, self.doc)
        payload["requirements"][0]["weight"] = 150
        response = self.client.post("/v1/ai-edit", json=payload)
        self.assertEqual(response.status_code, 422)

    def test_edit_operation_shape(self):
        edited = "Built Airflow ETL pipelines for finance reporting"
        generator = ScriptedGenerator(edit_decision(BULLET, edited))
        with patch(GENERATOR_TARGET, return_value=generator):
            response = self.client.post("/v1/ai-edit", json=request_json(self.requirements, self.doc))
        self.assertEqual(response.status_code, 200)

        operation = response.json()["operations"][0]
        self.assertEqual(
            operation,
            {
                "op": "replace",
                "path": BULLET,
                "value": edited,
                "itemType": "bullet",
                "requirementId": "r2",
                "mentioned": "implied",
                "feasibleEdit": True,
                "edited": True,
            },
        )

    def test_permanent_failure_returns_generic_error(self):
        generator = ScriptedGenerator(AIEditLLMError("invalid api key", code="auth"))
        with patch(GENERATOR_TARGET, return_value=generator):
            response = self.client.post("/v1/ai-edit", json=request_json(self.requirements, self.doc))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], GENERIC_AI_EDIT_ERROR)

    def test_transient_failure_returns_503(self):
        error = AIEditLLMError("Service Unavailable", transient=True)
        with patch(GENERATOR_TARGET, side_effect=error):
            response = self.client.post("/v1/ai-edit", json=request_json(self.requirements, self.doc))
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"], TEMPORARY_AI_SERVICE_ERROR)

    def test_stream_emits_progress_then_done(self):
        with patch(GENERATOR_TARGET, return_value=None):
            with self.client.stream(
                "POST",
                "/v1/ai-edit",
                json=request_json(self.requirements, self.doc, stream=True),
                headers={"accept": "text/event-stream"},
            ) as response:
                self.assertEqual(response.status_code, 200)
                stream_text = "".join(chunk for chunk in response.iter_text())

        events = _parse_sse(stream_text)
        self.assertEqual([name for name, _ in events], ["progress", "progress", "done"])
        self.assertEqual(events[0][1]["completed"], 1)
        self.assertEqual(events[0][1]["total"], 2)
        self.assertEqual(events[1][1]["requirementId"], "r2")
        self.assertEqual(len(events[2][1]["report"]), 2)
        self.assertNotIn("error", events[2][1])

    def test_stream_reports_failures_as_error_event(self):
        generator = ScriptedGenerator(AIEditLLMError("invalid api key", code="auth"))
        with patch(GENERATOR_TARGET, return_value=generator):
            with self.client.stream(
                "POST",
                "/v1/ai-edit",
                json=request_json(self.requirements, self.doc, stream=True),
            ) as response:
                stream_text = "".join(chunk for chunk in response.iter_text())

        events = _parse_sse(stream_text)
        self.assertEqual(events[0][0], "progress")
        self.assertEqual(events[-1], ("error", {"error": GENERIC_AI_EDIT_ERROR}))


if __name__ == "__main__":
    unittest.main()
