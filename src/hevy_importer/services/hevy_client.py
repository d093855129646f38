"""Client for the Hevy public API (exercise catalog, routine folders, routines)."""
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from hevy_importer.config import settings
from hevy_importer.errors import CatalogError, DestinationError, HttpFailure
from hevy_importer.hevy_models import (
    ExerciseTemplate,
    PostRoutineFolderRequest,
    PostRoutineRequest,
    RoutineFolder,
    RoutineFolderBody,
)


logger = logging.getLogger(__name__)

TEMPLATE_PAGE_SIZE = 100
REQUEST_TIMEOUT = 30


class HevyClient:
    """Thin wrapper around the Hevy REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.HEVY_BASE_URL).rstrip("/")
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        endpoint: str,
        error_class: type = HttpFailure,
        **kwargs: Any,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        headers = {
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
                **kwargs,
            )
        except requests.RequestException as e:
            raise error_class(None, str(e)) from e

        if not response.ok:
            raise error_class(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise error_class(response.status_code, f"Invalid JSON response: {response.text[:500]}") from e

    def get_all_exercise_templates(self) -> List[ExerciseTemplate]:
        """
        Fetch the whole exercise template catalog.

        Pages are requested from 1 until the reported page count is reached.
        Any failed page aborts the fetch; no partial catalog is returned.

        Raises:
            CatalogError: On any non-success response
        """
        templates: List[ExerciseTemplate] = []
        page = 1

        while True:
            data = self._request(
                "GET",
                "/exercise_templates",
                error_class=CatalogError,
                params={"page": page, "pageSize": TEMPLATE_PAGE_SIZE},
            )
            if not isinstance(data, dict):
                raise CatalogError(None, f"Unexpected exercise template page {page}: {str(data)[:500]}")
            try:
                templates.extend(
                    ExerciseTemplate.model_validate(raw)
                    for raw in data.get("exercise_templates") or []
                )
            except ValidationError as e:
                raise CatalogError(None, f"Unexpected exercise template on page {page}: {e}") from e

            page_count = data.get("page_count") or 1
            if page >= page_count:
                break
            page += 1

        logger.info(f"Fetched {len(templates)} exercise templates ({page} page(s))")
        return templates

    def create_routine_folder(self, title: str) -> RoutineFolder:
        """Create a routine folder; new folders are added at index 0."""
        request = PostRoutineFolderRequest(routine_folder=RoutineFolderBody(title=title))
        data = self._request(
            "POST",
            "/routine_folders",
            error_class=DestinationError,
            json=request.model_dump(),
        )
        # The API wraps the created folder in a "routine_folder" envelope
        folder = data.get("routine_folder", data) if isinstance(data, dict) else data
        try:
            created = RoutineFolder.model_validate(folder)
        except ValidationError as e:
            raise DestinationError(None, f"Unexpected routine folder response: {e}") from e
        logger.info(f"Created routine folder '{created.title}' (id={created.id})")
        return created

    def create_routine(self, routine: PostRoutineRequest) -> Dict[str, Any]:
        data = self._request(
            "POST",
            "/routines",
            error_class=DestinationError,
            json=routine.model_dump(),
        )
        logger.info(f"Created routine '{routine.routine.title}'")
        return data

    def test_connection(self) -> bool:
        try:
            self._request("GET", "/workouts/count")
            return True
        except HttpFailure as e:
            logger.warning(f"Hevy connection test failed: {e}")
            return False
