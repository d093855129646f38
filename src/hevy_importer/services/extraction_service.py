"""Extraction of structured workout programs from documents.

Two transports are supported:

- ``LLMExtractionClient`` sends the prompt and document to a model
  (Anthropic or OpenAI) and parses the single response.
- ``PipelineExtractionClient`` submits a job to an Airia pipeline and polls
  the execution until it reaches a terminal status.

In both cases only the submission step is retried; polling and parsing are not.
"""
import base64
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests
from pydantic import ValidationError

from hevy_importer.ai import AIClientFactory, retry_sync_call
from hevy_importer.config import Settings, settings as default_settings
from hevy_importer.errors import (
    ConfigurationError,
    ExtractionError,
    ExtractionParseError,
    ExtractionPipelineError,
    ExtractionTimeout,
)
from hevy_importer.models import WorkoutProgram
from hevy_importer.parsers.models import BinaryDocument, ExtractionInput


logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 10
MAX_POLL_ATTEMPTS = 30  # 5 minutes at the default interval
MAX_UNKNOWN_POLLS = 6  # consecutive polls with an unrecognized status
REQUEST_TIMEOUT = 60


EXTRACTION_PROMPT = """Extract workout information from this document and return it as a structured JSON object.

The document contains a workout program. Please analyze it and extract:
1. Program title and description
2. Weekly structure (weeks 1-12)
3. Each workout day with exercises
4. Sets, reps, and any other exercise details

Return the data in this exact JSON format:
{
  "title": "Program Name",
  "description": "Program description if available",
  "weeks": [
    {
      "weekNumber": 1,
      "title": "Week 1",
      "workouts": [
        {
          "title": "Day 1 - Push",
          "description": "Optional workout description",
          "exercises": [
            {
              "name": "Bench Press",
              "sets": [
                {
                  "type": "normal",
                  "reps": 8,
                  "repRange": { "min": 8, "max": 12 },
                  "weight": 60,
                  "duration": null,
                  "distance": null
                }
              ],
              "notes": "Optional exercise notes",
              "restSeconds": 90
            }
          ]
        }
      ]
    }
  ]
}

Important notes:
- Use "normal" for set type unless specified as warmup/failure/dropset
- Include rep ranges if specified (e.g., "8-12 reps")
- Weights are in kilograms, durations in seconds, distances in meters
- Extract rest periods if mentioned
- Group exercises by workout day
- Maintain the week structure (1-12)
- Be consistent with exercise names (use standard naming)

Return ONLY the JSON object, no other text."""


class JobStatus(str, Enum):
    """Normalized status of a remote pipeline execution"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"


# Every upstream token we know about; anything else is UNKNOWN
STATUS_TOKENS: Dict[str, JobStatus] = {
    "pending": JobStatus.PENDING,
    "queued": JobStatus.PENDING,
    "running": JobStatus.RUNNING,
    "in_progress": JobStatus.RUNNING,
    "processing": JobStatus.RUNNING,
    "completed": JobStatus.COMPLETED,
    "success": JobStatus.COMPLETED,
    "finished": JobStatus.COMPLETED,
    "failed": JobStatus.FAILED,
    "error": JobStatus.FAILED,
}

RESULT_FIELDS = ("result", "output", "outputs", "data")


def parse_job_status(token: Any) -> JobStatus:
    if not isinstance(token, str):
        return JobStatus.UNKNOWN
    return STATUS_TOKENS.get(token.strip().lower(), JobStatus.UNKNOWN)


def build_prompt(extraction_input: ExtractionInput) -> str:
    """Instruction prompt plus the serialized sheet data, if any."""
    document = extraction_input.document
    if isinstance(document, BinaryDocument):
        return f"{EXTRACTION_PROMPT}\n\nThe workout program is in the attached document ({document.filename})."

    sheet_data = json.dumps(extraction_input.sheet_payload(), indent=2, ensure_ascii=False)
    return f"{EXTRACTION_PROMPT}\n\nExcel Data:\n{sheet_data}"


def _load_json(text: str) -> Any:
    """Parse a JSON response, tolerating markdown fences or prose around the object."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    json_match = re.search(r'\{.*\}', text, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group(0))
        except json.JSONDecodeError as e:
            raise ExtractionParseError(
                f"Failed to parse extraction response as JSON: {text[:500]}"
            ) from e
    raise ExtractionParseError(f"Failed to parse extraction response as JSON: {text[:500]}")


def parse_program(result: Any) -> WorkoutProgram:
    """
    Validate an extraction result as a WorkoutProgram.

    Args:
        result: Already-structured dict, or a JSON string

    Raises:
        ExtractionParseError: If the result is not JSON matching the schema
    """
    if isinstance(result, bytes):
        result = result.decode("utf-8", errors="replace")
    data = _load_json(result) if isinstance(result, str) else result

    if not isinstance(data, dict):
        raise ExtractionParseError(f"Extraction result is not a JSON object: {str(result)[:500]}")

    try:
        return WorkoutProgram.model_validate(data)
    except ValidationError as e:
        raise ExtractionParseError(f"Extraction result does not match the workout schema: {e}") from e


def _data_url(document: BinaryDocument) -> str:
    encoded = base64.b64encode(document.content).decode("ascii")
    return f"data:{document.media_type};base64,{encoded}"


class ExtractionClient(ABC):
    """Turns a prepared document into a WorkoutProgram."""

    def __init__(self, sleep: Callable[[float], Any] = time.sleep):
        self._sleep = sleep

    @abstractmethod
    def extract(self, extraction_input: ExtractionInput) -> WorkoutProgram:
        """
        Run extraction for one document.

        Raises:
            ExtractionError: If no usable workout program could be produced
        """
        ...

    @abstractmethod
    def test_connection(self) -> bool:
        """Return True if the service is reachable with the configured credentials."""
        ...


class LLMExtractionClient(ExtractionClient):
    """Synchronous extraction through a model provider's SDK."""

    DEFAULT_MODELS = {
        "anthropic": "claude-3-5-sonnet-20241022",
        "openai": "gpt-4o",
    }

    def __init__(
        self,
        provider: str = "anthropic",
        model: Optional[str] = None,
        client: Any = None,
        api_key: Optional[str] = None,
        max_tokens: int = 8192,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        super().__init__(sleep=sleep)
        provider = provider.lower()
        if provider not in self.DEFAULT_MODELS:
            raise ConfigurationError(f"Unknown LLM provider: {provider}. Use 'anthropic' or 'openai'.")
        self.provider = provider
        self.model = model or self.DEFAULT_MODELS[provider]
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                if self.provider == "anthropic":
                    self._client = AIClientFactory.create_anthropic_client(api_key=self._api_key)
                else:
                    self._client = AIClientFactory.create_openai_client(api_key=self._api_key)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        return self._client

    def extract(self, extraction_input: ExtractionInput) -> WorkoutProgram:
        prompt = build_prompt(extraction_input)
        logger.info(
            f"Extracting workout program from {extraction_input.document.filename} "
            f"with {self.provider} ({self.model})"
        )
        text = retry_sync_call(self._submit, extraction_input, prompt, sleep=self._sleep)
        program = parse_program(text)
        logger.info(f"Extracted program '{program.title}' with {len(program.weeks)} week(s)")
        return program

    def _submit(self, extraction_input: ExtractionInput, prompt: str) -> str:
        client = self.client
        try:
            if self.provider == "anthropic":
                return self._submit_anthropic(client, extraction_input, prompt)
            return self._submit_openai(client, extraction_input, prompt)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"{self.provider} API error: {e}") from e

    def _submit_anthropic(self, client: Any, extraction_input: ExtractionInput, prompt: str) -> str:
        document = extraction_input.document
        if isinstance(document, BinaryDocument):
            content: Any = [
                {
                    "type": "document",
                    "source": {
                        "type": "base64",
                        "media_type": document.media_type,
                        "data": base64.b64encode(document.content).decode("ascii"),
                    },
                },
                {"type": "text", "text": prompt},
            ]
        else:
            content = prompt

        message = client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": content}],
            temperature=0.1,
        )
        text = "".join(
            block.text for block in message.content if getattr(block, "type", "text") == "text"
        )
        if not text:
            raise ExtractionParseError("Anthropic response contained no text")
        return text

    def _submit_openai(self, client: Any, extraction_input: ExtractionInput, prompt: str) -> str:
        document = extraction_input.document
        if isinstance(document, BinaryDocument):
            content: Any = [
                {
                    "type": "file",
                    "file": {"filename": document.filename, "file_data": _data_url(document)},
                },
                {"type": "text", "text": prompt},
            ]
        else:
            content = prompt

        response = client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": content}],
            temperature=0.1,
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content
        if not text:
            raise ExtractionParseError("OpenAI response contained no text")
        return text

    def test_connection(self) -> bool:
        try:
            client = self.client
            if self.provider == "anthropic":
                client.messages.create(
                    model=self.model,
                    max_tokens=10,
                    messages=[{"role": "user", "content": "Test connection"}],
                )
            else:
                client.models.retrieve(self.model)
            return True
        except Exception as e:
            logger.warning(f"{self.provider} connection test failed: {e}")
            return False


class PipelineExtractionClient(ExtractionClient):
    """Asynchronous extraction through an Airia pipeline execution."""

    def __init__(
        self,
        api_key: str,
        pipeline_id: str,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = MAX_POLL_ATTEMPTS,
        max_unknown_polls: int = MAX_UNKNOWN_POLLS,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        super().__init__(sleep=sleep)
        self.api_key = api_key
        self.pipeline_id = pipeline_id
        self.base_url = (base_url or default_settings.AIRIA_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.max_unknown_polls = max_unknown_polls

    def extract(self, extraction_input: ExtractionInput) -> WorkoutProgram:
        prompt = build_prompt(extraction_input)
        logger.info(
            f"Submitting {extraction_input.document.filename} to Airia pipeline {self.pipeline_id}"
        )
        execution = retry_sync_call(self._submit, extraction_input, prompt, sleep=self._sleep)

        execution_id = execution.get("executionId") or execution.get("id")
        if execution_id:
            return self._poll_for_completion(str(execution_id))

        # Pipelines configured to run synchronously answer with the result directly
        result = self._result_field(execution)
        if result is not None:
            return parse_program(result)

        raise ExtractionError("Invalid Airia API response: missing execution ID")

    def _headers(self) -> Dict[str, str]:
        return {"X-API-KEY": self.api_key}

    def _submit(self, extraction_input: ExtractionInput, prompt: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "userInput": prompt,
            "debug": False,
            "userId": None,
            "conversationId": None,
        }
        document = extraction_input.document
        if isinstance(document, BinaryDocument):
            payload["files"] = [_data_url(document)]

        url = f"{self.base_url}/v2/PipelineExecution/{self.pipeline_id}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ExtractionError(f"Airia API request failed: {e}") from e

        if not response.ok:
            raise ExtractionError(f"Airia API error ({response.status_code}): {response.text}")

        try:
            execution = response.json()
        except ValueError as e:
            raise ExtractionParseError(f"Airia API returned invalid JSON: {response.text[:500]}") from e

        if not isinstance(execution, dict):
            raise ExtractionError(f"Invalid Airia API response: {str(execution)[:500]}")
        return execution

    def _fetch_execution(self, execution_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/PipelineExecution/{execution_id}"
        try:
            response = self.session.get(url, headers=self._headers(), timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise ExtractionPipelineError(f"Airia API request failed: {e}") from e

        if not response.ok:
            raise ExtractionPipelineError(f"Airia API error ({response.status_code}): {response.text}")

        try:
            execution = response.json()
        except ValueError as e:
            raise ExtractionPipelineError(
                f"Airia API returned invalid JSON while polling: {response.text[:500]}"
            ) from e
        return execution if isinstance(execution, dict) else {}

    @staticmethod
    def _result_field(execution: Dict[str, Any]) -> Any:
        for key in RESULT_FIELDS:
            if execution.get(key) is not None:
                return execution[key]
        return None

    def _poll_for_completion(self, execution_id: str) -> WorkoutProgram:
        """Poll the execution until it completes, fails or the ceiling is reached."""
        unknown_streak = 0

        for attempt in range(1, self.max_poll_attempts + 1):
            execution = self._fetch_execution(execution_id)
            token = execution.get("status") or execution.get("state") or execution.get("executionStatus")
            status = parse_job_status(token)

            if status is JobStatus.COMPLETED:
                logger.info(f"Pipeline execution {execution_id} completed after {attempt} poll(s)")
                return parse_program(self._result_field(execution))

            if status is JobStatus.FAILED:
                message = (
                    execution.get("error")
                    or execution.get("errorMessage")
                    or execution.get("message")
                    or "Unknown error"
                )
                raise ExtractionPipelineError(f"Pipeline execution failed: {message}")

            if status is JobStatus.UNKNOWN:
                unknown_streak += 1
                logger.warning(
                    f"Unrecognized pipeline status {token!r} ({attempt}/{self.max_poll_attempts})"
                )
                if unknown_streak > self.max_unknown_polls:
                    raise ExtractionTimeout(
                        f"Pipeline execution reported unrecognized status {token!r} "
                        f"for {unknown_streak} consecutive polls"
                    )
            else:
                unknown_streak = 0
                logger.info(f"Pipeline execution {status.value}... ({attempt}/{self.max_poll_attempts})")

            if attempt < self.max_poll_attempts:
                self._sleep(self.poll_interval)

        total_minutes = self.max_poll_attempts * self.poll_interval / 60
        raise ExtractionTimeout(f"Pipeline execution timed out after {total_minutes:g} minutes")

    def test_connection(self) -> bool:
        """A 200 or 404 on the pipeline config means the key was accepted."""
        url = f"{self.base_url}/v1/PipelinesConfig/{self.pipeline_id}"
        try:
            response = self.session.get(url, headers=self._headers(), timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning(f"Airia connection test failed: {e}")
            return False
        return response.status_code in (200, 404)


def create_extraction_client(
    config: Optional[Settings] = None,
    sleep: Callable[[float], Any] = time.sleep,
) -> ExtractionClient:
    """Build the extraction client for the configured provider."""
    config = config or default_settings
    provider = config.EXTRACTION_PROVIDER

    if provider == "airia":
        if not config.AIRIA_API_KEY or not config.AIRIA_PIPELINE_ID:
            raise ConfigurationError(
                "Airia API key and pipeline ID are required. Run: hevy-importer setup"
            )
        return PipelineExtractionClient(
            api_key=config.AIRIA_API_KEY,
            pipeline_id=config.AIRIA_PIPELINE_ID,
            base_url=config.AIRIA_BASE_URL,
            sleep=sleep,
        )

    api_key = config.ANTHROPIC_API_KEY if provider == "anthropic" else config.OPENAI_API_KEY
    return LLMExtractionClient(provider=provider, api_key=api_key, sleep=sleep)
