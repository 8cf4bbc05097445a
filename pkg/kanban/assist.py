"""
AI assist for the task form.

Given a task title and its current description, asks a Gemini model for:
  - a clearer description
  - a one-word category
  - a priority (Low, Medium, High)
  - 3-5 actionable subtasks

The model is called through the generateContent REST endpoint with a fixed
JSON response schema. Any failure raises AssistError so the caller can show
it; suggestions are only applied to a task once they parsed cleanly.
"""
import json
import logging
import re
from typing import Any, Dict, List

import requests

from .schema import Priority, SubTask, Task, new_id

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

SYSTEM_INSTRUCTION = (
    "You are a helpful project management assistant. Your goal is to help users "
    "refine task descriptions, suggest categories, estimate priorities, and break "
    "down tasks into actionable subtasks."
)

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "description": {"type": "STRING", "description": "A clearer, concise description of the task."},
        "category": {"type": "STRING", "description": "A short category name (e.g., Design, Backend, Marketing)."},
        "priority": {"type": "STRING", "enum": [p.value for p in Priority]},
        "subTasks": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A list of actionable subtasks.",
        },
    },
    "required": ["description", "category", "priority", "subTasks"],
}


class AssistError(Exception):
    """Raised when suggestions could not be fetched or understood."""
    pass


def build_prompt(title: str, description: str = "") -> str:
    return (
        f'Task Title: "{title}". Current Description: "{description}".\n'
        "Please generate a better description, suggest a one-word category, "
        "estimate priority (Low, Medium, High), and provide a list of 3-5 "
        "subtasks to complete this main task."
    )


def parse_suggestion(text: str) -> Dict[str, Any]:
    """Parse and validate the model's JSON answer."""
    text = (text or "").strip()
    # Strip markdown code fences if present
    if text.startswith("```"):
        text = re.sub(r'^```(?:json)?\s*', '', text)
        text = re.sub(r'\s*```$', '', text)

    try:
        result = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        raise AssistError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(result, dict):
        raise AssistError("Model returned a non-object answer")

    suggestion: Dict[str, Any] = {}
    if isinstance(result.get("description"), str) and result["description"]:
        suggestion["description"] = result["description"]
    if isinstance(result.get("category"), str) and result["category"]:
        suggestion["category"] = result["category"]
    if result.get("priority") is not None:
        try:
            suggestion["priority"] = Priority(result["priority"])
        except ValueError:
            logger.warning(f"Ignoring unknown suggested priority {result['priority']!r}")
    sub_tasks = result.get("subTasks")
    if isinstance(sub_tasks, list):
        suggestion["subTasks"] = [str(st) for st in sub_tasks if str(st).strip()]
    return suggestion


def apply_suggestion(task: Task, suggestion: Dict[str, Any]) -> Task:
    """Apply parsed suggestions to a task. Suggested subtasks are appended."""
    if suggestion.get("description"):
        task.description = suggestion["description"]
    if suggestion.get("category"):
        task.category = suggestion["category"]
    if suggestion.get("priority"):
        task.priority = suggestion["priority"]
    new_subtasks: List[SubTask] = [
        SubTask(id=new_id(), title=title) for title in suggestion.get("subTasks", [])
    ]
    task.sub_tasks = task.sub_tasks + new_subtasks
    return task


class TaskAssistant:
    """Gemini-backed suggestion client."""

    def __init__(self, api_key: str, model: str = "gemini-3-flash-preview", timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def suggest(self, title: str, description: str = "") -> Dict[str, Any]:
        if not self.api_key:
            raise AssistError("No Gemini API key configured")

        body = {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [{"role": "user", "parts": [{"text": build_prompt(title, description)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        try:
            r = requests.post(
                GEMINI_URL.format(model=self.model),
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Gemini request failed: {e}")
            raise AssistError(f"Failed to fetch AI suggestions: {e}") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AssistError("Gemini response had no text candidate") from e
        return parse_suggestion(text)
