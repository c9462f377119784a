# menu_analyzer/core/prompts/builder.py
"""
Prompt building utilities for menu text extraction and analysis.
Centralizes all prompt logic and Jinja2 template rendering.
"""

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from menu_analyzer.config import get_settings


class PromptBuilder:
    """Builds prompts from Jinja2 templates with validation"""

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Initialize the prompt builder with template directory.

        Args:
            templates_dir: Path to Jinja2 templates. Defaults to config setting.
        """
        if templates_dir is None:
            settings = get_settings()
            templates_dir = settings.PROMPTS_DIR

        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            undefined=StrictUndefined,  # Fail if variable is missing
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **variables) -> str:
        """
        Render a template with provided variables.

        Args:
            template_name: Name of the template file (e.g., "analyze_menu.j2")
            **variables: Variables to pass to the template

        Returns:
            Rendered prompt string

        Raises:
            jinja2.TemplateNotFound: If template doesn't exist
            jinja2.UndefinedError: If required variable is missing
        """
        template = self.env.get_template(template_name)
        return template.render(**variables)

    def extract_text_prompt(self, document_kind: str) -> str:
        """
        Build the OCR-style prompt sent along with a menu photo or scanned PDF.

        Args:
            document_kind: "image" or "pdf"

        Returns:
            Formatted prompt string
        """
        return self.render("extract_text.j2", document_kind=document_kind)

    def analyze_menu_prompt(self, menu_text: str, not_a_menu_json: str) -> str:
        """
        Build the analysis prompt.

        Args:
            menu_text: Plain menu text that passed content validation
            not_a_menu_json: JSON object the model must return for non-menus

        Returns:
            Formatted prompt string
        """
        return self.render(
            "analyze_menu.j2",
            menu_text=menu_text,
            not_a_menu_json=not_a_menu_json,
        )


# Singleton instance for easy import
_builder_instance = None


def get_prompt_builder() -> PromptBuilder:
    """Get cached prompt builder instance"""
    global _builder_instance
    if _builder_instance is None:
        _builder_instance = PromptBuilder()
    return _builder_instance
