"""
Backend clients for the Ticket Tracker.

Thin httpx wrappers over the external REST API:
- Ticket service (email processing, ticket CRUD, contributor assignment,
  consolidation, project names)
- Contributor directory service

Contributor fields are never shaped here: outbound tickets go through
``reconcile`` and ``payloads`` first.
"""

import csv
import io
import logging
from datetime import timedelta
from typing import Any, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import ApiConfig, CONTRIBUTOR_LIMIT, ReconcileConfig
from .directory import Directory, DirectoryCache
from .models import (
    ConsolidateRow,
    Contributor,
    ContributorRequest,
    DepartmentStats,
    Ticket,
)
from .payloads import build_create_payload, build_update_payload
from .reconcile import reconcile_ticket
from .references import parse_reference
from .table import FALLBACK_PROJECT_NAMES
from .validation import TicketValidationError, validate_ticket


logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Error returned by, or while reaching, the backend.

    Attributes:
        message: Human-readable description.
        status: HTTP status, 500 when no response was received.
        details: Response body, if any.
    """

    def __init__(self, message: str, status: int = 500, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


class BackendUnavailableError(ApiError):
    """The backend could not be reached."""
    pass


class IncompleteResponseError(ApiError):
    """The backend closed the connection before the response was complete."""
    pass


# Failures worth retrying
TRANSIENT_ERRORS = (BackendUnavailableError, IncompleteResponseError)


class _BackendClient:
    """
    Shared request handling for the backend services.

    Must be used as a context manager; the underlying httpx client lives for
    the duration of the ``with`` block.
    """

    def __init__(self, config: ApiConfig, timeout: float):
        """
        Initialize the client.

        Args:
            config: API configuration with base URL and retry policy.
            timeout: Request timeout in seconds.
        """
        self._config = config
        self._timeout = timeout
        self._client: Optional[httpx.Client] = None

    def __enter__(self):
        """Context manager entry."""
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._timeout,
            headers={"Content-Type": "application/json"},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        if self._client:
            self._client.close()
            self._client = None

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and translate failures into ApiError.

        Raises:
            ApiError: On transport errors or non-2xx responses.
        """
        if not self._client:
            raise RuntimeError("Client must be used within a context manager")

        logger.debug(f"{method} {path}")

        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            details = self._body(e.response)
            message = f"HTTP error: {e.response.status_code}"
            if isinstance(details, dict) and details.get("message"):
                message = str(details["message"])
            logger.error(f"{method} {path} failed: {message}")
            raise ApiError(message, status=e.response.status_code, details=details) from e
        except httpx.RemoteProtocolError as e:
            logger.error(f"{method} {path} returned an incomplete response: {e}")
            raise IncompleteResponseError(
                "Response from server was incomplete. "
                "This may be due to a large dataset or server timeout."
            ) from e
        except (httpx.ConnectError, httpx.NetworkError) as e:
            logger.error(f"{method} {path} could not reach the backend: {e}")
            raise BackendUnavailableError(
                f"Unable to connect to the backend server at {self._config.base_url}. "
                "Please ensure it is running."
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{method} {path} request error: {e}")
            raise ApiError(f"Request failed: {str(e)}") from e

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text or None

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in response", status=response.status_code) from e

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Malformed {model.__name__} in response", details=data) from e

    def _parse_list(self, model: type[BaseModel], data: Any) -> list[Any]:
        if not isinstance(data, list):
            raise ApiError(f"Expected a list of {model.__name__}", details=data)
        return [self._parse(model, item) for item in data]

    def _retrying(self) -> Retrying:
        delay = self._config.retry_delay
        return Retrying(
            stop=stop_after_attempt(max(1, self._config.max_retries)),
            wait=wait_exponential(multiplier=delay, min=delay),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=lambda retry_state: logger.warning(
                f"Retrying after error: {retry_state.outcome.exception()} "
                f"(attempt {retry_state.attempt_number}/{self._config.max_retries})"
            ),
            reraise=True,
        )


class TicketServiceClient(_BackendClient):
    """Client for ticket endpoints."""

    def __init__(self, config: ApiConfig):
        super().__init__(config, config.ticket_timeout)

    def __enter__(self) -> "TicketServiceClient":
        return super().__enter__()

    def process_email_text(self, email_text: str) -> Ticket:
        """
        Send raw email text to the backend for ticket extraction.

        Raises:
            ValueError: If the text is blank.
            ApiError: If the backend call fails.
        """
        if not email_text.strip():
            raise ValueError("Email text cannot be empty")

        logger.info(f"Processing email text ({len(email_text)} characters)")
        response = self._request(
            "POST",
            "/api/emails/process-text",
            content=email_text.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        return self._parse(Ticket, self._json(response))

    def _check(self, ticket: Any, validate: bool) -> None:
        if not validate:
            return
        outcome = validate_ticket(ticket)
        if not outcome.success:
            raise TicketValidationError(outcome.errors)

    def create_ticket(
        self,
        ticket: Ticket,
        directory: Optional[Directory] = None,
        limit: int = CONTRIBUTOR_LIMIT,
        validate: bool = True,
    ) -> Ticket:
        """
        Save a new ticket with reconciled contributors.

        Args:
            ticket: Ticket to create.
            directory: Directory used to link contributor names.
            limit: Maximum number of contributors.
            validate: Run form validation first.

        Returns:
            The saved ticket as returned by the backend.

        Raises:
            TicketValidationError: If form validation fails.
            ApiError: If the backend call fails.
        """
        self._check(ticket, validate)
        merged = reconcile_ticket(ticket, directory, limit)
        payload = build_create_payload(ticket, merged)

        logger.info(f"Creating ticket with {merged.count} contributor(s)")
        response = self._request("POST", "/api/tickets", json=payload)
        return self._parse(Ticket, self._json(response))

    def update_ticket(
        self,
        ticket_id: int,
        ticket: Ticket,
        directory: Optional[Directory] = None,
        limit: int = CONTRIBUTOR_LIMIT,
        validate: bool = True,
    ) -> Ticket:
        """
        Update a ticket through the edit-json endpoint.

        The whole reconciled contributor state is resent, never patched.

        Raises:
            TicketValidationError: If form validation fails.
            ApiError: If the backend call fails.
        """
        self._check(ticket, validate)
        merged = reconcile_ticket(ticket, directory, limit)
        payload = build_update_payload(ticket_id, ticket, merged)

        logger.info(f"Updating ticket {ticket_id} with {merged.count} contributor(s)")
        response = self._request("PUT", f"/api/tickets/{ticket_id}/edit-json", json=payload)
        return self._parse(Ticket, self._json(response))

    def get_all_tickets(self) -> list[Ticket]:
        """
        Fetch every ticket, retrying transient network failures.

        Returns:
            Tickets; an empty list if the body is not a list.
        """
        def fetch() -> list[Ticket]:
            response = self._request(
                "GET",
                "/api/tickets",
                headers={"Accept": "application/json", "Cache-Control": "no-cache"},
            )
            data = self._json(response)
            if not isinstance(data, list):
                logger.warning(f"Expected a list of tickets but got {type(data).__name__}")
                return []
            return [self._parse(Ticket, item) for item in data]

        tickets = self._retrying()(fetch)
        logger.info(f"Fetched {len(tickets)} tickets")
        return tickets

    def get_ticket(self, ticket_id: int) -> Ticket:
        response = self._request("GET", f"/api/tickets/{ticket_id}")
        return self._parse(Ticket, self._json(response))

    def delete_ticket(self, ticket_id: int) -> None:
        self._request("DELETE", f"/api/tickets/{ticket_id}")
        logger.info(f"Deleted ticket {ticket_id}")

    def get_consolidate_data(self) -> list[ConsolidateRow]:
        """Per-project bug summary."""
        response = self._request("GET", "/api/consolidate")
        return self._parse_list(ConsolidateRow, self._json(response))

    def get_project_names(self) -> list[str]:
        """
        Project names known to the backend.

        Falls back to ``FALLBACK_PROJECT_NAMES`` when the endpoint fails.
        """
        try:
            response = self._request("GET", "/api/projects")
            data = self._json(response)
        except ApiError as e:
            logger.warning(f"Failed to fetch projects, using fallback list: {e.message}")
            return list(FALLBACK_PROJECT_NAMES)

        if not isinstance(data, list):
            logger.warning("Projects endpoint did not return a list, using fallback list")
            return list(FALLBACK_PROJECT_NAMES)
        return [str(name) for name in data if name]

    def assign_contributor(self, ticket_id: int, contributor_id: int) -> Ticket:
        """Link a directory contributor to a ticket by id."""
        response = self._request("PUT", f"/api/tickets/{ticket_id}/contributor/{contributor_id}")
        return self._parse(Ticket, self._json(response))

    def assign_contributor_by_name(self, ticket_id: int, contributor_name: str) -> Ticket:
        """Assign a contributor by name; the backend links it if it can."""
        response = self._request(
            "PUT",
            f"/api/tickets/{ticket_id}/contributor",
            params={"contributorName": contributor_name},
        )
        return self._parse(Ticket, self._json(response))

    def remove_contributor(self, ticket_id: int) -> Ticket:
        response = self._request("DELETE", f"/api/tickets/{ticket_id}/contributor")
        return self._parse(Ticket, self._json(response))

    def get_ticket_contributor(self, ticket_id: int):
        """The ticket's legacy contributor as a tagged reference, or None."""
        response = self._request("GET", f"/api/tickets/{ticket_id}/contributor")
        return parse_reference(self._body(response))

    def migrate_contributors(self) -> None:
        """Ask the backend to migrate old contributor data (run once)."""
        self._request("POST", "/api/tickets/migrate-contributors")
        logger.info("Contributor migration requested")


class ContributorServiceClient(_BackendClient):
    """Client for the contributor directory endpoints."""

    def __init__(self, config: ApiConfig):
        super().__init__(config, config.contributor_timeout)

    def __enter__(self) -> "ContributorServiceClient":
        return super().__enter__()

    def _entries(self, path: str, **kwargs: Any) -> list[Contributor]:
        response = self._request("GET", path, **kwargs)
        return self._parse_list(Contributor, self._json(response))

    def get_all(self) -> list[Contributor]:
        """Every directory entry, active or not."""
        return self._entries("/api/contributors")

    def get_active(self) -> list[Contributor]:
        """Active entries only (for dropdowns)."""
        return self._entries("/api/contributors/active")

    def get(self, contributor_id: int) -> Contributor:
        response = self._request("GET", f"/api/contributors/{contributor_id}")
        return self._parse(Contributor, self._json(response))

    def create(self, request: ContributorRequest) -> Contributor:
        response = self._request("POST", "/api/contributors", json=request.to_wire())
        created = self._parse(Contributor, self._json(response))
        logger.info(f"Created contributor {created.id} '{created.name}'")
        return created

    def update(self, contributor_id: int, request: ContributorRequest) -> Contributor:
        response = self._request("PUT", f"/api/contributors/{contributor_id}", json=request.to_wire())
        return self._parse(Contributor, self._json(response))

    def delete(self, contributor_id: int) -> None:
        """Soft delete: the backend sets ``active=False``."""
        self._request("DELETE", f"/api/contributors/{contributor_id}")

    def activate(self, contributor_id: int) -> Contributor:
        response = self._request("PUT", f"/api/contributors/{contributor_id}/activate")
        return self._parse(Contributor, self._json(response))

    def deactivate(self, contributor_id: int) -> Contributor:
        response = self._request("PUT", f"/api/contributors/{contributor_id}/deactivate")
        return self._parse(Contributor, self._json(response))

    def permanently_delete(self, contributor_id: int) -> None:
        """Hard delete; the entry is removed from the directory."""
        self._request("DELETE", f"/api/contributors/{contributor_id}/permanent")
        logger.warning(f"Permanently deleted contributor {contributor_id}")

    def search_by_name(self, term: str) -> list[Contributor]:
        return self._entries("/api/contributors/search", params={"name": term})

    def get_by_department(self, department: str) -> list[Contributor]:
        return self._entries(f"/api/contributors/department/{department}")

    def search(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        department: Optional[str] = None,
        employee_id: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> list[Contributor]:
        """Search with any combination of criteria; unset ones are omitted."""
        params = {
            "name": name,
            "email": email,
            "department": department,
            "employeeId": employee_id,
        }
        params = {key: value for key, value in params.items() if value}
        if active is not None:
            params["active"] = "true" if active else "false"
        return self._entries("/api/contributors/search", params=params)

    def check_email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        params: dict[str, Any] = {"email": email}
        if exclude_id is not None:
            params["excludeId"] = exclude_id
        response = self._request("GET", "/api/contributors/check-email", params=params)
        return bool(self._json(response))

    def check_employee_id_exists(self, employee_id: str, exclude_id: Optional[int] = None) -> bool:
        params: dict[str, Any] = {"employeeId": employee_id}
        if exclude_id is not None:
            params["excludeId"] = exclude_id
        response = self._request("GET", "/api/contributors/check-employee-id", params=params)
        return bool(self._json(response))

    def department_stats(self) -> list[DepartmentStats]:
        """
        Contributor counts per department, computed from the full directory.

        Entries without a department are counted under "Unknown".
        """
        counts: dict[str, list[int]] = {}
        for entry in self.get_all():
            stats = counts.setdefault(entry.department or "Unknown", [0, 0])
            stats[0] += 1
            if entry.active:
                stats[1] += 1

        return [
            DepartmentStats(department=department, count=count, active_count=active_count)
            for department, (count, active_count) in counts.items()
        ]

    def bulk_activate(self, ids: Sequence[int]) -> None:
        for contributor_id in ids:
            self.activate(contributor_id)
        logger.info(f"Activated {len(ids)} contributor(s)")

    def bulk_deactivate(self, ids: Sequence[int]) -> None:
        for contributor_id in ids:
            self.deactivate(contributor_id)
        logger.info(f"Deactivated {len(ids)} contributor(s)")

    def bulk_delete(self, ids: Sequence[int]) -> None:
        for contributor_id in ids:
            self.delete(contributor_id)
        logger.info(f"Deleted {len(ids)} contributor(s)")

    def import_contributors(self, content: str) -> tuple[int, list[str]]:
        """
        Create directory entries from exported CSV text.

        The first row is a header. Columns are id (ignored), name, email,
        employeeId, department, phone, active, notes. Each row is created
        independently; a failing row is reported and the import goes on.

        Args:
            content: CSV text.

        Returns:
            Number of created entries and one message per failed row,
            e.g. ``"Line 3: Invalid email format"``.
        """
        created = 0
        errors: list[str] = []

        rows = csv.reader(io.StringIO(content))
        next(rows, None)

        for row in rows:
            line_number = rows.line_num
            values = [value.strip() for value in row]
            if not any(values):
                continue
            values += [""] * (8 - len(values))

            try:
                request = ContributorRequest(
                    name=values[1],
                    email=values[2],
                    employee_id=values[3] or None,
                    department=values[4] or None,
                    phone=values[5] or None,
                    active=values[6].lower() == "true",
                    notes=values[7] or None,
                )
                self.create(request)
                created += 1
            except ValidationError as e:
                message = "; ".join(error["msg"] for error in e.errors())
                errors.append(f"Line {line_number}: {message}")
            except ApiError as e:
                errors.append(f"Line {line_number}: {e.message}")

        logger.info(f"Imported {created} contributor(s), {len(errors)} failed")
        return created, errors

    def load_directory(self, cache: Optional[DirectoryCache] = None) -> DirectoryCache:
        """
        Refresh both directory subsets.

        The two fetches are independent: if one fails, the cache keeps its
        previous copy of that subset and resolution degrades to fewer
        matches.

        Args:
            cache: Cache to refresh (a new empty one by default).

        Returns:
            The refreshed cache.

        Raises:
            ApiError: If both fetches fail.
        """
        cache = cache or DirectoryCache()
        failures = []

        try:
            cache = cache.with_active(self.get_active())
        except ApiError as e:
            logger.error(f"Failed to load active contributors: {e.message}")
            failures.append(e)

        try:
            cache = cache.with_full(self.get_all())
        except ApiError as e:
            logger.error(f"Failed to load contributors: {e.message}")
            failures.append(e)

        if len(failures) == 2:
            raise failures[-1]

        logger.info(
            f"Directory loaded: {len(cache.active)} active, {len(cache.full)} total"
        )
        return cache

    def refresh_directory(
        self,
        cache: Optional[DirectoryCache],
        max_age: Optional[timedelta] = None,
    ) -> DirectoryCache:
        """
        Reload the directory only if ``cache`` is missing or stale.

        ``max_age`` defaults to ``DIRECTORY_MAX_AGE``.
        """
        if max_age is None:
            max_age = timedelta(seconds=ReconcileConfig().directory_max_age)
        if cache is not None and not cache.is_stale(max_age):
            logger.debug("Directory cache is fresh, skipping reload")
            return cache
        return self.load_directory(cache)
