"""OpenAI Responses API client for progress reports."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from progress_portal.services.insights import ReportClient


@dataclass
class OpenAIReportClient(ReportClient):
    """Report client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIReportClient":
        """Create an OpenAI report client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(
        self, *, model: str, prompt: str, instructions: str | None = None
    ) -> str:
        """Call OpenAI Responses API and return the output text."""
        request_payload: dict[str, object] = {"model": model, "input": prompt}
        if instructions:
            request_payload["instructions"] = instructions
        response = await self.client.responses.create(**request_payload)
        return response.output_text or ""

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
