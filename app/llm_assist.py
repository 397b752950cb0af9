"""
Text-generation collaborator
=============================

Uses Gemini to write two kinds of short, user-facing text:

  - a help message when a simulation fails (explain_issue)
  - a summary of the savings when a simulation succeeds (summarize_result)

Both are optional extras. Callers treat any exception raised here as
"no text available" and fall back to static copy; numeric results never
depend on this module.
"""
from __future__ import annotations

import logging
import os
from typing import Protocol

from pydantic import BaseModel, Field

from common.formatters import format_currency, format_kwh
from errors import SimulationError

log = logging.getLogger(__name__)

_HELP_PROMPT = (
    "You are an assistant embedded in an electricity bill simulator used by "
    "Spanish households and businesses. Your goal is to give helpful, "
    "context-sensitive guidance to users based on the problem they hit. "
    "Use a friendly and professional tone and answer in Spanish.\n\n"
    "Issue description: {issue}\n\n"
    "Provide a clear and concise help message to guide the user to resolve "
    "the issue. Break the solution into small steps if necessary."
)

_SUMMARY_PROMPT = (
    "You are an assistant in an electricity bill simulator. Write a short, "
    "encouraging, easy-to-understand summary of a tariff simulation in Spanish, "
    "addressing the user directly.\n\n"
    "The user's current provider is '{current}'.\n"
    "Based on a total consumption of {consumption}, the simulation found that "
    "'{best}' is the most economical option.\n"
    "By switching, the user could save an estimated {savings} per year.\n\n"
    "Write 2-3 sentences highlighting the best company and the potential savings."
)


# ---------------------------------------------------------------------------
# Pydantic schemas for Gemini structured output
# ---------------------------------------------------------------------------

class HelpMessageSchema(BaseModel):
    """Structured answer for a failed simulation."""
    help_message: str = Field(description="Help message guiding the user to fix the issue.")


class ResultSummarySchema(BaseModel):
    """Structured answer for a successful simulation."""
    summary: str = Field(description="Friendly, brief summary of the simulation result.")


class TextAssistant(Protocol):
    """Request/response contract of the text-generation service."""

    def explain_issue(self, issue_description: str) -> str: ...

    def summarize_result(
        self,
        current_plan_name: str,
        best_plan_name: str,
        estimated_savings: float,
        total_consumption_kwh: float,
    ) -> str: ...


# ---------------------------------------------------------------------------
# Gemini client
# ---------------------------------------------------------------------------

def _get_gemini_client():
    """Create a Gemini client. Requires GEMINI_API_KEY env var."""
    try:
        from google import genai
    except ImportError:
        raise RuntimeError(
            "google-genai package not installed. Run: pip install google-genai"
        )

    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError(
            "GEMINI_API_KEY environment variable not set. "
            "Set it to your Google AI Studio API key."
        )

    return genai.Client(api_key=api_key)


class GeminiAssistant:
    """TextAssistant backed by Gemini structured JSON output."""

    def __init__(self, model: str = "gemini-2.0-flash", client=None) -> None:
        self.model = model
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = _get_gemini_client()
        return self._client

    def _generate(self, prompt: str, schema: type[BaseModel]) -> BaseModel:
        response = self.client.models.generate_content(
            model=self.model,
            contents=[prompt],
            config={
                "response_mime_type": "application/json",
                "response_schema": schema,
            },
        )
        response_text = response.text
        if not response_text:
            raise RuntimeError(f"Gemini returned an empty response ({self.model})")
        return schema.model_validate_json(response_text)

    def explain_issue(self, issue_description: str) -> str:
        parsed = self._generate(_HELP_PROMPT.format(issue=issue_description), HelpMessageSchema)
        return parsed.help_message.strip()

    def summarize_result(
        self,
        current_plan_name: str,
        best_plan_name: str,
        estimated_savings: float,
        total_consumption_kwh: float,
    ) -> str:
        prompt = _SUMMARY_PROMPT.format(
            current=current_plan_name,
            best=best_plan_name,
            savings=format_currency(estimated_savings),
            consumption=format_kwh(total_consumption_kwh),
        )
        parsed = self._generate(prompt, ResultSummarySchema)
        return parsed.summary.strip()


def describe_failure(error: SimulationError) -> str:
    """Natural-language description of a failed run, sent to explain_issue."""
    return (
        "The user uploaded a meter reading export, but processing failed with "
        f"the error: {error}. The file format may be wrong or the file may be "
        "corrupt or missing the expected sections and columns."
    )
