"""
Python client for the Diagram Studio API.

Mirrors what the dashboard page does in the browser: optionally wraps the
input with the enhancement instruction, calls the API with the user's Firebase
ID token, and keeps the last few results in an in-memory session history.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from diagram_history import DiagramHistory, build_enhanced_text, get_diagram_type_name

logger = logging.getLogger(__name__)


class DiagramClientError(Exception):
    """Raised when the API answers with an error status"""

    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.details = details


class DiagramClient:
    """Session-scoped API client holding the ephemeral diagram history"""

    def __init__(self, base_url: str, id_token: str, http_client: Optional[httpx.Client] = None,
                 timeout: Optional[float] = 120):
        self.base_url = base_url.rstrip("/")
        self.id_token = id_token
        self._http = http_client or httpx.Client(timeout=timeout)
        self.history = DiagramHistory()

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._http.post(
            f"{self.base_url}{path}",
            json=payload,
            headers={"Authorization": f"Bearer {self.id_token}"},
        )
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text}
        if not response.is_success:
            message = body.get("error") if isinstance(body, dict) else None
            raise DiagramClientError(response.status_code, message or "Request failed", body.get("details") if isinstance(body, dict) else None)
        return body

    def enhance_prompt(self, idea: str, context: str) -> str:
        return self._post("/api/enhance-prompt", {"idea": idea, "context": context})["suggestedPrompt"]

    def generate_diagram(self, input_text: str, diagram_type: str = "flowchart", enhance: bool = True) -> Dict[str, Any]:
        """
        Generate a diagram and record the result in the session history

        Args:
            input_text: The user's description
            diagram_type: One of er_diagram, flowchart, class_diagram
            enhance: Wrap the input with the "Generate a ... diagram" instruction

        Returns:
            The API response: {message, diagramId, diagramCode, analysis}
        """
        if not input_text or not input_text.strip():
            raise ValueError("Please enter some text to generate a diagram.")

        text = build_enhanced_text(input_text, diagram_type) if enhance else input_text
        result = self._post("/api/generate", {
            "text": text,
            "diagramType": diagram_type,
            "diagramTypeName": get_diagram_type_name(diagram_type),
        })
        self.history.add(result, diagram_type)
        logger.info(f"Generated diagram {result.get('diagramId')} ({diagram_type})")
        return result

    def load_from_history(self, index: int) -> Dict[str, Any]:
        return self.history.load(index)
