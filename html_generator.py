"""
HTML Generator Service

Renders the dashboard page that hosts the browser side of the application:
input form, Mermaid rendering, session history and image export.
"""

import logging
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import (
    TEMPLATES_DIR,
    EXPORT_RENDER_DELAY_MS,
    EXPORT_SCALE,
    HISTORY_CAPACITY,
    MAX_INPUT_TEXT_LENGTH,
    FIREBASE_WEB_API_KEY,
    FIREBASE_AUTH_DOMAIN,
    FIREBASE_PROJECT_ID,
)
from diagram_history import DEFAULT_DIAGRAM_TYPE, DIAGRAM_TYPE_NAMES, LEGACY_DIAGRAM_TYPE_MAP

logger = logging.getLogger(__name__)

SAVED_DIAGRAMS_LIMIT = 50


class HTMLGenerator:
    """Service for generating the dashboard HTML page"""

    def __init__(self, template_dir=TEMPLATES_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(['html', 'xml'])
        )

    def _prepare_template_data(self) -> Dict[str, Any]:
        return {
            'title': 'Diagram Studio',
            'diagram_types': [{'id': k, 'name': v} for k, v in DIAGRAM_TYPE_NAMES.items()],
            'page_settings': {
                'legacyDiagramTypes': LEGACY_DIAGRAM_TYPE_MAP,
                'diagramTypeNames': DIAGRAM_TYPE_NAMES,
                'defaultDiagramType': DEFAULT_DIAGRAM_TYPE,
                'historyCapacity': HISTORY_CAPACITY,
                'exportRenderDelayMs': EXPORT_RENDER_DELAY_MS,
                'exportScale': EXPORT_SCALE,
                'maxInputLength': MAX_INPUT_TEXT_LENGTH,
                'savedDiagramsLimit': SAVED_DIAGRAMS_LIMIT,
            },
            'firebase_config': {
                'apiKey': FIREBASE_WEB_API_KEY,
                'authDomain': FIREBASE_AUTH_DOMAIN,
                'projectId': FIREBASE_PROJECT_ID,
            },
        }

    def generate_dashboard_html(self) -> Optional[str]:
        """
        Generate the dashboard page

        Returns:
            HTML string or None if rendering fails
        """
        try:
            template = self.env.get_template('dashboard.html')
            return template.render(**self._prepare_template_data())
        except Exception as e:
            logger.error(f"❌ Failed to generate dashboard HTML: {e}")
            return None


# Global instance
html_generator = HTMLGenerator()
