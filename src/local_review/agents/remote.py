"""LLM-backed analysis task over an OpenAI-compatible chat completions API."""

import json
import logging
import re
from typing import Any

import httpx

from local_review.agents.base import AnalysisTask
from local_review.config import RemoteTaskConfig
from local_review.errors import TaskFailure
from local_review.models.changes import ChangeKind, ChangeSet
from local_review.models.context import ProjectContext
from local_review.models.findings import Category, Finding

logger = logging.getLogger(__name__)

# Keep prompts bounded for very large change-sets
MAX_DIFF_CHARS = 50000

FOCUS_INSTRUCTIONS = {
    "bug": "Focus ONLY on logic errors, null handling, async misuse, race conditions and edge cases.",
    "security": "Focus ONLY on injection, authentication/authorization, secrets and data exposure.",
    "compliance": "Focus ONLY on violations of the project conventions described in the context.",
    "bestPractice": "Focus ONLY on framework best practices that will matter in production.",
}


class RemoteAnalysisClient:
    """Minimal async client for ``POST {base_url}/chat/completions``."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 120) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteAnalysisClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def complete(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 4096,
        temperature: float = 0.0,
    ) -> str:
        """Send one chat completion and return the assistant text."""
        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        response = await self._client.post("/chat/completions", json=body)
        response.raise_for_status()
        data = response.json()
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Unexpected completion payload: {data!r}") from e

    async def complete_json(
        self, model: str, system_prompt: str, user_prompt: str, **kwargs: Any
    ) -> dict[str, Any]:
        """Chat completion parsed as a JSON object."""
        content = await self.complete(model, system_prompt, user_prompt, **kwargs)
        return parse_json_response(content)


def parse_json_response(content: str) -> dict[str, Any]:
    """Parse JSON from a model response, handling markdown code blocks."""
    content = content.strip()

    if "```json" in content:
        match = re.search(r"```json\s*([\s\S]*?)```", content)
        if match:
            content = match.group(1).strip()
    elif "```" in content:
        match = re.search(r"```\s*([\s\S]*?)```", content)
        if match:
            content = match.group(1).strip()

    json_match = re.search(r"\{[\s\S]*\}", content)
    if json_match:
        content = json_match.group(0)

    return json.loads(content)


def _normalize_confidence(value: Any) -> int:
    """Accept 0-100 or 0.0-1.0 confidences."""
    number = float(value)
    if isinstance(value, float) and 0.0 < number <= 1.0:
        number *= 100
    return max(0, min(100, round(number)))


class RemoteAnalysisTask(AnalysisTask):
    """Asks a hosted model to review the change-set and return JSON findings."""

    DESCRIPTION = "Remote model review"

    def __init__(
        self, config: RemoteTaskConfig, client: RemoteAnalysisClient | None = None
    ) -> None:
        super().__init__(config.name)
        self.config = config
        self.client = client or RemoteAnalysisClient(
            config.base_url, config.api_key, timeout=config.timeout_seconds
        )

    async def analyze(self, change_set: ChangeSet, context: ProjectContext) -> list[Finding]:
        try:
            response = await self.client.complete_json(
                self.config.model,
                self._get_system_prompt(),
                self._build_review_prompt(change_set, context),
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except (httpx.HTTPError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            raise TaskFailure(self.task_id, f"remote review failed: {e}") from e
        return self._parse_findings(response)

    async def close(self) -> None:
        await self.client.close()

    def _get_system_prompt(self) -> str:
        focus = FOCUS_INSTRUCTIONS.get(self.config.focus, FOCUS_INSTRUCTIONS["bug"])
        return f"""You are an expert reviewer of .NET and Angular code.
{focus}

You MUST respond with valid JSON in this exact format:
{{
    "findings": [
        {{
            "file_path": "path/to/file.cs",
            "line_number": 10,
            "category": "compliance|bug|security|bestPractice",
            "title": "Short descriptive title",
            "detail": "What is wrong and why it matters",
            "suggestion": "How to fix it",
            "confidence": 85
        }}
    ]
}}

Rules:
- Only report issues on added or modified lines
- confidence is 0-100: 25 plausible, 50 minor, 75 verified, 100 certain and severe
- If the code is fine, return an empty findings array
"""

    def _build_review_prompt(self, change_set: ChangeSet, context: ProjectContext) -> str:
        kinds = ", ".join(k.value for k in context.kinds) or "unknown"
        parts = []
        for change in change_set:
            if change.change_kind == ChangeKind.DELETED or change.is_binary:
                continue
            lines = "\n".join(f"{no}: {text}" for no, text in change.added_lines)
            parts.append(f"### {change.path} ({change.change_kind.value})\n{lines}")
        changes_text = "\n\n".join(parts)[:MAX_DIFF_CHARS]

        return f"""## Project
- Kinds: {kinds}
- Changed files: {len(change_set)}

## Added lines (line number: content)
{changes_text}

Review the changes above and report issues in your focus area.
"""

    def _parse_findings(self, response: dict[str, Any]) -> list[Finding]:
        """Parse findings from the model response, skipping malformed entries."""
        findings = []
        for raw in response.get("findings", []):
            try:
                line = raw.get("line_number")
                findings.append(
                    Finding(
                        title=raw["title"],
                        file_path=raw["file_path"],
                        line_number=int(line) if line else None,
                        category=Category(raw.get("category", self.config.focus)),
                        detail=raw.get("detail", ""),
                        suggestion=raw.get("suggestion", ""),
                        raw_confidence=_normalize_confidence(raw.get("confidence", 50)),
                        source=self.task_id,
                    )
                )
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to parse finding: {e}, raw: {raw}")
                continue
        return findings
