"""
Diagram generation using the Groq API.

Builds a strict-JSON prompt from the user's description, asks the model for
Mermaid.js code plus a structured analysis, and turns whatever comes back into
a normalized result. When the model ignores the JSON instructions the raw text
is scanned for a Mermaid header so a diagram can still be shown.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx
from groq import Groq

from config import (
    GROQ_API_KEY,
    GROQ_MODEL,
    GROQ_TEMPERATURE,
    GROQ_MAX_TOKENS,
    MAX_INPUT_TEXT_LENGTH,
    MAX_FLOW_POINTS,
    MAX_ARROW_MEANINGS,
    MAX_ANALYSIS_DEPTH,
    VALID_DIAGRAM_TYPES,
)
from user_friendly_errors import DiagramGenerationError, format_validation_error

logger = logging.getLogger(__name__)

# Opening tokens accepted when the model answer is not valid JSON
FALLBACK_DIAGRAM_KEYWORDS = [
    'graph TD;',
    'flowchart TD;',
    'sequenceDiagram;',
    'classDiagram;',
    'stateDiagram;',
    'erDiagram;',
    'journey;',
    'gantt',
    'pie',
    'mindmap',
]

_FALLBACK_PATTERN = re.compile(
    r'\b(?:' + '|'.join(re.escape(k) for k in FALLBACK_DIAGRAM_KEYWORDS) + r')[\s\S]*',
    re.IGNORECASE,
)
_FENCE_PATTERN = re.compile(r'^```(?:json)?\s*|\s*```$', re.IGNORECASE)

FALLBACK_SUMMARY = "Analysis JSON parsing failed. Displaying raw diagram if possible."
RESPONSE_SNIPPET_LENGTH = 500
TITLE_MIN_EXCLUSIVE = 10
TITLE_MAX_EXCLUSIVE = 150
TITLE_TEXT_PREFIX_LENGTH = 50


class ParseOutcome(Enum):
    STRUCTURED = "structured"
    RECOVERED = "recovered"
    DECLINED = "declined"
    FAILED = "failed"


@dataclass
class ParsedLLMOutput:
    """Result of interpreting one model answer"""
    outcome: ParseOutcome
    mermaid_code: str = ""
    analysis: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    diagnostic: Optional[str] = None


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` wrapper if present"""
    return _FENCE_PATTERN.sub('', content.strip()).strip()


def parse_llm_output(content: str) -> ParsedLLMOutput:
    """
    Interpret the raw model answer.

    Valid JSON with an "error" field means the model declined; valid JSON with
    "mermaidCode" is the normal case. Unparsable text falls back to a keyword
    scan for Mermaid code with an empty analysis.
    """
    try:
        parsed = json.loads(strip_code_fences(content))
    except ValueError as e:
        match = _FALLBACK_PATTERN.search(content)
        diagram_code = match.group(0).strip() if match else ''
        if diagram_code:
            logger.warning("Falling back to regex extraction for mermaid code due to JSON parse failure.")
            return ParsedLLMOutput(
                outcome=ParseOutcome.RECOVERED,
                mermaid_code=diagram_code,
                analysis={"summary": FALLBACK_SUMMARY, "flowPoints": [], "arrowMeanings": {}},
            )
        return ParsedLLMOutput(
            outcome=ParseOutcome.FAILED,
            error=str(e),
            diagnostic=content[:RESPONSE_SNIPPET_LENGTH],
        )

    if not isinstance(parsed, dict):
        return ParsedLLMOutput(outcome=ParseOutcome.FAILED, diagnostic=content[:RESPONSE_SNIPPET_LENGTH])

    if parsed.get("error"):
        return ParsedLLMOutput(outcome=ParseOutcome.DECLINED, error=str(parsed["error"]))

    mermaid_code = parsed.get("mermaidCode")
    if not isinstance(mermaid_code, str) or not mermaid_code.strip():
        return ParsedLLMOutput(outcome=ParseOutcome.FAILED, diagnostic=content[:RESPONSE_SNIPPET_LENGTH])

    analysis = parsed.get("analysis")
    return ParsedLLMOutput(
        outcome=ParseOutcome.STRUCTURED,
        mermaid_code=mermaid_code.strip(),
        analysis=analysis if isinstance(analysis, dict) else {},
    )


def create_groq_client(api_key: str, http_client: Optional[httpx.Client] = None) -> Groq:
    """Groq client that sends each request exactly once"""
    return Groq(api_key=api_key, max_retries=0, http_client=http_client)


def _bound_extra_field(value: Any, depth: int = 1, in_list: bool = False) -> Any:
    """
    Make an extra analysis value storable in Firestore.

    Arrays directly inside arrays, and anything nested deeper than
    MAX_ANALYSIS_DEPTH, are replaced by their JSON text.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if depth > MAX_ANALYSIS_DEPTH or (in_list and isinstance(value, list)):
        return json.dumps(value, default=str)
    if isinstance(value, list):
        return [_bound_extra_field(v, depth + 1, in_list=True) for v in value[:MAX_FLOW_POINTS]]
    if isinstance(value, dict):
        return {str(k): _bound_extra_field(v, depth + 1) for k, v in value.items()}
    return str(value)


def normalize_analysis(analysis: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Fill in missing analysis fields and cap list/map sizes; extra fields are kept but bounded"""
    source = analysis if isinstance(analysis, dict) else {}
    normalized = {
        str(key): _bound_extra_field(value)
        for key, value in source.items()
        if key not in ("summary", "flowPoints", "arrowMeanings")
    }

    summary = source.get("summary")
    normalized["summary"] = summary if isinstance(summary, str) else ""

    flow_points = source.get("flowPoints")
    if isinstance(flow_points, list):
        normalized["flowPoints"] = [str(p) for p in flow_points[:MAX_FLOW_POINTS]]
    else:
        normalized["flowPoints"] = []

    arrow_meanings = source.get("arrowMeanings")
    if isinstance(arrow_meanings, dict):
        items = list(arrow_meanings.items())[:MAX_ARROW_MEANINGS]
        normalized["arrowMeanings"] = {str(k): str(v) for k, v in items}
    else:
        normalized["arrowMeanings"] = {}

    return normalized


def derive_title(summary: str, text: str) -> str:
    """Use the summary as title when it has a sensible length, else a text prefix"""
    if TITLE_MIN_EXCLUSIVE < len(summary) < TITLE_MAX_EXCLUSIVE:
        return summary
    suffix = "..." if len(text) > TITLE_TEXT_PREFIX_LENGTH else ""
    return f"Diagram: {text[:TITLE_TEXT_PREFIX_LENGTH]}{suffix}"


class DiagramGenerator:
    """Generate Mermaid diagrams with analysis from free text using Groq API"""

    def __init__(self, client=None, model: str = GROQ_MODEL):
        if client is not None:
            self.client = client
            self.model = model
        elif not GROQ_API_KEY:
            logger.warning("GROQ_API_KEY not set. Diagram generation will be disabled.")
            self.client = None
            self.model = None
        else:
            self.client = create_groq_client(GROQ_API_KEY)
            self.model = model

    def is_available(self) -> bool:
        """Check if Groq API is available for diagram generation"""
        return self.client is not None

    def validate_request(self, text: Any, diagram_type: Any, diagram_type_name: Any) -> str:
        """
        Validate a generation request before anything leaves the process

        Returns:
            The lower-cased diagram type id

        Raises:
            DiagramGenerationError: 400 for invalid input
        """
        if not isinstance(text, str) or not text.strip():
            raise DiagramGenerationError(format_validation_error("text"), 400)
        if len(text) > MAX_INPUT_TEXT_LENGTH:
            raise DiagramGenerationError(
                f"Input text exceeds maximum length of {MAX_INPUT_TEXT_LENGTH} characters.", 400
            )
        if not isinstance(diagram_type, str) or not diagram_type.strip():
            raise DiagramGenerationError(format_validation_error("diagramType", 'Missing or invalid "diagramType" (ID) field.'), 400)
        if not isinstance(diagram_type_name, str) or not diagram_type_name.strip():
            raise DiagramGenerationError(
                format_validation_error("diagramTypeName", 'Missing or invalid "diagramTypeName" (Display Name) field.'), 400
            )

        normalized_type = diagram_type.lower()
        if normalized_type not in VALID_DIAGRAM_TYPES:
            supported = ", ".join(sorted(VALID_DIAGRAM_TYPES))
            raise DiagramGenerationError(
                f'Invalid "diagramType" ID. Supported types are: {supported}.',
                400,
                {"receivedType": diagram_type},
            )
        return normalized_type

    def build_prompt(self, text: str, diagram_type_name: str) -> str:
        """Prompt asking for a single JSON object with mermaidCode and analysis"""
        return f"""
    Generate a {diagram_type_name.upper()} diagram in Mermaid.js syntax and provide an analysis
    based on the following text: "{text}".

    The output MUST be a single, valid JSON object with the following structure:
    {{
      "mermaidCode": "YOUR_MERMAID_CODE_HERE (string, without markdown backticks or 'mermaid' keyword)",
      "analysis": {{
        "summary": "A concise paragraph summarizing the diagram and its purpose based on the input text.",
        "flowPoints": ["Key element or step 1 described", "Key element or step 2 described", "..."],
        "arrowMeanings": {{"A-->B": "Description of what A to B represents", "C-.->D": "Description of C to D"}}
      }}
    }}

    Important Rules:
    - The "mermaidCode" value should be ONLY the Mermaid syntax (e.g., "graph TD; A-->B;"). Do NOT include ```mermaid or ```.
    - The "analysis.flowPoints" should be an array of strings, describing key components or steps.
    - The "analysis.arrowMeanings" should be an object where keys are Mermaid arrows (e.g., "X-->Y") and values are their explanations.
    - Ensure the entire response is a single, valid JSON object. Do not add any text before or after the JSON object.
    - If you cannot generate a meaningful diagram or analysis from the text, respond with:
      {{ "error": "Unable to generate diagram from the provided text." }}
    """

    def _request_completion(self, prompt: str, user_id: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=GROQ_TEMPERATURE,
                max_tokens=GROQ_MAX_TOKENS,
            )
        except Exception as e:
            logger.error(f"❌ Groq API call failed for user {user_id}: {e}")
            raise DiagramGenerationError(
                "Failed to communicate with the LLM API.", 503, {"error": f"{type(e).__name__}: {e}", "userId": user_id}
            ) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None

        if not content or not content.strip():
            raise DiagramGenerationError("No content in LLM API response.", 500, {"userId": user_id})
        return content

    def generate(self, user_id: str, text: str, diagram_type_name: str) -> Dict[str, Any]:
        """
        Ask the model for a diagram and return its code with a normalized analysis

        Returns:
            {"diagram_code": str, "analysis": dict, "outcome": ParseOutcome}

        Raises:
            DiagramGenerationError: 422 when the model declines, 500/503 otherwise
        """
        if not self.is_available():
            logger.error("GROQ_API_KEY is not set.")
            raise DiagramGenerationError("Server configuration error: Missing Groq API key.", 500)

        content = self._request_completion(self.build_prompt(text, diagram_type_name), user_id)
        parsed = parse_llm_output(content)

        if parsed.outcome == ParseOutcome.DECLINED:
            raise DiagramGenerationError(
                f"AI could not process the request: {parsed.error}", 422, {"userId": user_id}
            )

        if parsed.outcome == ParseOutcome.FAILED:
            if parsed.error:
                logger.error(f"Failed to parse JSON from LLM response for user {user_id}: {parsed.error}")
                raise DiagramGenerationError(
                    "Failed to parse analysis from AI. The AI response was not valid JSON. "
                    "Ensure the AI returns only a JSON object.",
                    500,
                    {"responseContent": parsed.diagnostic, "error": parsed.error, "userId": user_id},
                )
            raise DiagramGenerationError(
                "AI failed to generate diagram code.",
                500,
                {"responseContent": parsed.diagnostic, "userId": user_id},
            )

        if not parsed.mermaid_code:
            raise DiagramGenerationError(
                "AI failed to generate diagram code.",
                500,
                {"responseContent": content[:RESPONSE_SNIPPET_LENGTH], "userId": user_id},
            )

        analysis = normalize_analysis(parsed.analysis)
        logger.info(f"📊 Diagram generated for user {user_id} ({parsed.outcome.value})")
        return {
            "diagram_code": parsed.mermaid_code,
            "analysis": analysis,
            "outcome": parsed.outcome,
        }


# Global instance
diagram_generator = DiagramGenerator()
