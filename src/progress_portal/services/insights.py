"""AI executive summaries and Q&A for weekly updates."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from progress_portal.domain.projects import Project, WeeklyUpdate

NOT_CONFIGURED_MESSAGE = "API Key not configured. Cannot generate AI report."
EMPTY_RESPONSE_MESSAGE = "Analysis currently unavailable."
HIGH_USAGE_MESSAGE = (
    "AI analysis temporarily unavailable due to high usage. Please try again later."
)
FAILURE_MESSAGE = "Unable to generate AI insight at this time."

_RETRYABLE_STATUS_CODES = {429, 503}

_logger = logging.getLogger(__name__)


class ReportClient(Protocol):
    """Interface for the generative-text service."""

    async def generate(
        self, *, model: str, prompt: str, instructions: str | None = None
    ) -> str:
        """Return generated text for the prompt."""


@dataclass
class InsightService:
    """Builds prompts from project data and calls the text service."""

    client: ReportClient | None
    model: str
    max_retries: int = 3
    base_delay_seconds: float = 1.0

    async def generate_report(self, project: Project, update: WeeklyUpdate) -> str:
        """Return a short client-facing summary of the update."""
        if self.client is None:
            return NOT_CONFIGURED_MESSAGE
        prompt = build_report_prompt(project, update)
        return await self._generate(self.client, prompt=prompt, instructions=None)

    async def answer_question(self, project: Project, question: str) -> str:
        """Answer a client question using only the project's own data."""
        if self.client is None:
            return NOT_CONFIGURED_MESSAGE
        return await self._generate(
            self.client,
            prompt=question,
            instructions=build_assistant_context(project),
        )

    async def _generate(
        self, client: ReportClient, *, prompt: str, instructions: str | None
    ) -> str:
        attempt = 0
        while True:
            try:
                text = await client.generate(
                    model=self.model, prompt=prompt, instructions=instructions
                )
            except Exception as exc:
                status_code = _status_code_from_exception(exc)
                retryable = status_code in _RETRYABLE_STATUS_CODES
                if retryable and attempt < self.max_retries:
                    delay = self.base_delay_seconds * (2**attempt)
                    _logger.warning(
                        "Report attempt %s failed with %s. Retrying in %ss",
                        attempt + 1,
                        status_code,
                        delay,
                    )
                    attempt += 1
                    await asyncio.sleep(delay)
                    continue
                _logger.exception("Report generation failed")
                return _fallback_message(exc, status_code)
            return text or EMPTY_RESPONSE_MESSAGE


def build_report_prompt(project: Project, update: WeeklyUpdate) -> str:
    """Build the executive-summary prompt for one update."""
    stats = update.stats
    return (
        "Act as a senior construction project manager.\n"
        "Generate a concise, professional executive summary for a weekly "
        "client update.\n\n"
        f"Project Name: {project.name}\n"
        f"Location: {project.location}\n"
        f"Current Week: {update.week_number}\n"
        f'Raw Notes: "{update.summary}"\n'
        "Key Stats:\n"
        f"- Completion: {stats.completion}%\n"
        f"- Workers: {stats.workers_on_site}\n"
        f"- Weather: {stats.weather_conditions}\n\n"
        "The tone should be reassuring, professional, and highlight progress.\n"
        "Mention the specific stats provided.\n"
        "Keep it under 150 words."
    )


def build_assistant_context(project: Project) -> str:
    """Build the system instructions for the project assistant."""
    history = "\n".join(
        f"Week {update.week_number} ({update.date}):\n"
        f"- Summary: {update.summary}\n"
        f"- Completion: {update.stats.completion}%\n"
        f"- Workers on site: {update.stats.workers_on_site}\n"
        f"- Weather: {update.stats.weather_conditions}"
        for update in project.updates
    )
    return (
        "You are the AI Project Assistant for a construction project named "
        f'"{project.name}".\n'
        "Answer client questions about this project using only the data below.\n\n"
        "Project Details:\n"
        f"- Client: {project.client_name}\n"
        f"- Location: {project.location}\n"
        f"- Description: {project.description}\n\n"
        "Weekly Updates History (most recent first):\n"
        f"{history}\n\n"
        "Instructions:\n"
        "1. Only answer questions related to this project.\n"
        "2. Use the most recent week unless the client names a different week.\n"
        "3. Be professional, polite, and reassuring.\n"
        "4. If the data does not answer the question, say so and suggest "
        "contacting the site manager.\n"
        "5. Keep answers concise."
    )


def _status_code_from_exception(exc: Exception) -> int | None:
    """Extract an HTTP status code from an SDK exception, if available."""
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def _fallback_message(exc: Exception, status_code: int | None) -> str:
    if status_code == 429 or "quota" in str(exc).lower():
        return HIGH_USAGE_MESSAGE
    return FAILURE_MESSAGE
