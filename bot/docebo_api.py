import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from config.settings import (
    DEFAULT_TOKEN_LIFETIME,
    DOCEBO_REQUEST_TIMEOUT,
    MAX_REMOTE_PAGES,
    REMOTE_PAGE_DELAY,
    REMOTE_PAGE_SIZE,
    RESOLVE_SEARCH_LIMIT,
    DoceboConfig,
    load_docebo_config,
)
from services import normalizers
from utils.error_handler import DoceboAPIError, EnrollmentRejectedError, ResourceNotFoundError
from utils.retry import retry_api_call

logger = logging.getLogger(__name__)

ENROLLMENT_REJECTIONS = (
    ("existing_enrollments", "User is already enrolled in this {resource}"),
    ("invalid_users", "User ID is invalid or user doesn't exist"),
    ("invalid_courses", "Course ID is invalid or course doesn't exist"),
    ("invalid_learning_plans", "Learning plan ID is invalid or learning plan doesn't exist"),
    ("permission_denied", "Permission denied - user cannot be enrolled in this {resource}"),
)


def extract_items(result: Any) -> List[Dict[str, Any]]:
    """Pull the record list out of the response shapes Docebo uses"""
    if isinstance(result, list):
        return result
    if not isinstance(result, dict):
        return []
    data = result.get("data")
    if isinstance(data, dict):
        items = data.get("items")
        return items if isinstance(items, list) else []
    if isinstance(data, list):
        return data
    return []


def _belongs_to_user(item: Dict[str, Any], user_id: str) -> bool:
    owner = normalizers.coalesce(item, normalizers.ENROLLMENT_USER_ID_FIELDS)
    return owner is None or str(owner) == str(user_id)


class DoceboAPI:
    """Docebo LMS REST client (Async) with a cached password-grant token"""

    TOKEN_ENDPOINT = "/oauth2/token"

    def __init__(self, config: DoceboConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.base_url = config.base_url
        self.client = client or httpx.AsyncClient(timeout=DOCEBO_REQUEST_TIMEOUT)
        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0
        self._token_lock = asyncio.Lock()

    def _token_valid(self) -> bool:
        return bool(self._access_token) and self._token_expiry > time.time()

    async def get_access_token(self) -> str:
        """
        Return the cached bearer token, fetching a new one when missing or expired

        Concurrent callers share one in-flight fetch.
        """
        if self._token_valid():
            return self._access_token

        async with self._token_lock:
            if self._token_valid():
                return self._access_token
            try:
                token_data = await self._request_token()
                access_token = token_data.get("access_token")
                if not access_token:
                    raise DoceboAPIError("No access token received", status_code=401)

                lifetime = token_data.get("expires_in") or DEFAULT_TOKEN_LIFETIME
                self._access_token = access_token
                self._token_expiry = time.time() + float(lifetime)
                logger.info(f"✓ Docebo token acquired (expires in {lifetime}s)")
                return self._access_token
            except Exception as e:
                self._access_token = None
                self._token_expiry = 0.0
                logger.error(f"❌ Docebo token acquisition failed: {e}")
                raise

    @retry_api_call()
    async def _request_token(self) -> dict:
        response = await self.client.post(
            f"{self.base_url}{self.TOKEN_ENDPOINT}",
            data={
                "grant_type": "password",
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "scope": "api",
                "username": self.config.username,
                "password": self.config.password,
            },
            headers={"Accept": "application/json"},
        )
        if response.status_code >= 400:
            raise DoceboAPIError(
                message=f"Token request failed: {response.status_code}",
                status_code=response.status_code,
                details={"response": response.text}
            )
        return response.json()

    async def api_request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[dict] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Authenticated request against the Docebo API

        Args:
            endpoint: Path (may already carry a query string)
            method: HTTP method
            body: JSON body, sent for non-GET requests only
            params: Extra query parameters, merged with any in `endpoint`

        Returns:
            Parsed JSON response ({} for an empty body)
        """
        token = await self.get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        json_body = body if method.upper() != "GET" and body is not None else None

        try:
            response = await self.client.request(
                method.upper(),
                f"{self.base_url}{endpoint}",
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.error(f"❌ API request to {endpoint} failed: {e}")
            raise DoceboAPIError(
                message=f"API request failed: {e}",
                status_code=503,
                details={"endpoint": endpoint}
            )

        if response.status_code >= 400:
            logger.error(f"❌ API request to {endpoint} failed: {response.status_code}")
            raise DoceboAPIError(
                message=f"API request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                details={"endpoint": endpoint, "response": response.text}
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    async def health_check(self) -> bool:
        await self.get_access_token()
        return True

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()

    # Search

    async def search_users(self, search_text: str, limit: int = 25) -> List[dict]:
        result = await self.api_request("/manage/v1/user", params={
            "search_text": search_text,
            "page_size": limit,
        })
        return extract_items(result)

    async def search_courses(self, search_text: str, limit: int = 25) -> List[dict]:
        result = await self.api_request("/learn/v1/courses", params={
            "search_text": search_text,
            "page_size": limit,
        })
        return extract_items(result)

    async def search_learning_plans(self, search_text: str, limit: int = 25) -> List[dict]:
        result = await self.api_request("/learningplan/v1/learningplans", params={
            "search_text": search_text,
            "page_size": limit,
            "sort_attr": "name",
            "sort_dir": "asc",
        })
        return extract_items(result)

    # Users

    async def find_user_by_email(self, email: str, limit: int = 5) -> Optional[dict]:
        """Raw user record whose email matches exactly (case-insensitive), or None"""
        users = await self.search_users(email, limit)
        wanted = email.strip().lower()
        for user in users:
            if (user.get("email") or "").lower() == wanted:
                return user
        return None

    async def get_user_details(self, email: str) -> dict:
        user = await self.find_user_by_email(email, limit=25)
        if not user:
            raise ResourceNotFoundError(f"No user found with email: {email}", "user", email)
        return normalizers.format_user_details(user)

    async def get_enhanced_user_details(self, user_id: str) -> dict:
        """User details plus manager and extra profile fields; manager lookup failure is non-fatal"""
        result = await self.api_request(f"/manage/v1/user/{user_id}")
        user_data = result.get("data") if isinstance(result, dict) else None
        if not user_data:
            raise ResourceNotFoundError(f"User not found with ID: {user_id}", "user", str(user_id))

        details = normalizers.format_user_details(user_data)

        manager = None
        manager_id = normalizers.coalesce(user_data, normalizers.USER_MANAGER_FIELDS)
        if manager_id:
            try:
                manager_result = await self.api_request(f"/manage/v1/user/{manager_id}")
                if manager_result.get("data"):
                    manager = normalizers.format_manager(manager_result["data"], manager_id)
            except DoceboAPIError as e:
                logger.warning(f"⚠️ Could not fetch manager {manager_id}: {e.message}")

        details["manager"] = manager
        details["additional_fields"] = normalizers.additional_user_fields(user_data)
        return details

    # Courses and learning plans

    async def find_course_by_identifier(self, identifier: str) -> dict:
        """
        Resolve a course from an ID, code or name

        Numeric identifiers try the direct lookup first. Otherwise (or when that
        fails) search and prefer exact ID, exact code, exact name, substring,
        then the first result.

        Raises:
            ResourceNotFoundError: when the search comes back empty
        """
        identifier = str(identifier).strip()
        if identifier.isdigit():
            try:
                result = await self.api_request(f"/learn/v1/courses/{identifier}")
                if isinstance(result, dict) and result.get("data"):
                    return normalizers.enrich_course(result["data"])
            except DoceboAPIError as e:
                logger.info(f"Course direct lookup failed for ID {identifier}: {e.status_code}")

        courses = await self.search_courses(identifier, RESOLVE_SEARCH_LIMIT)
        if not courses:
            raise ResourceNotFoundError(f"Course not found: {identifier}", "course", identifier)

        best = self._best_match(
            courses, identifier, normalizers.course_id, normalizers.course_name,
            normalizers.COURSE_CODE_FIELDS
        )
        return normalizers.enrich_course(best)

    async def find_learning_plan_by_identifier(self, identifier: str) -> dict:
        """Same resolution order as find_course_by_identifier, for learning plans"""
        identifier = str(identifier).strip()
        if identifier.isdigit():
            try:
                result = await self.api_request(f"/learningplan/v1/learningplans/{identifier}")
                if isinstance(result, dict) and result.get("data"):
                    return normalizers.enrich_learning_plan(result["data"])
            except DoceboAPIError as e:
                logger.info(f"Learning plan direct lookup failed for ID {identifier}: {e.status_code}")

        plans = await self.search_learning_plans(identifier, RESOLVE_SEARCH_LIMIT)
        if not plans:
            raise ResourceNotFoundError(f"Learning plan not found: {identifier}", "learning_plan", identifier)

        best = self._best_match(
            plans, identifier, normalizers.learning_plan_id, normalizers.learning_plan_name,
            ("code",)
        )
        return normalizers.enrich_learning_plan(best)

    @staticmethod
    def _best_match(records, identifier, get_id, get_name, code_fields) -> dict:
        wanted = identifier.lower()
        checks = (
            lambda r: get_id(r) == identifier,
            lambda r: str(normalizers.coalesce(r, code_fields, "")).lower() == wanted,
            lambda r: get_name(r).lower() == wanted,
            lambda r: wanted in get_name(r).lower(),
        )
        for check in checks:
            for record in records:
                if check(record):
                    return record
        return records[0]

    # Enrollment mutations

    async def enroll_user_in_course(
        self,
        user_id: str,
        course_id: str,
        level: str = "3",
        assignment_type: Optional[str] = None,
        start_validity: Optional[str] = None,
        end_validity: Optional[str] = None,
    ) -> dict:
        body = {
            "course_ids": [str(course_id)],
            "user_ids": [str(user_id)],
            "level": level,
            "date_begin_validity": start_validity,
            "date_expire_validity": end_validity,
        }
        if assignment_type and assignment_type != "none":
            body["assignment_type"] = assignment_type
        body = {key: value for key, value in body.items() if value is not None}

        result = await self.api_request("/learn/v1/enrollments", "POST", body)
        self._raise_if_rejected(result, "course")
        logger.info(f"✓ Enrolled user {user_id} in course {course_id}")
        return result

    async def enroll_user_in_learning_plan(
        self,
        user_id: str,
        learning_plan_id: str,
        assignment_type: Optional[str] = None,
        start_validity: Optional[str] = None,
        end_validity: Optional[str] = None,
    ) -> dict:
        body = {
            "learningplan_ids": [str(learning_plan_id)],
            "user_ids": [str(user_id)],
            "date_begin_validity": start_validity,
            "date_expire_validity": end_validity,
        }
        if assignment_type and assignment_type != "none":
            body["assignment_type"] = assignment_type
        body = {key: value for key, value in body.items() if value is not None}

        result = await self.api_request("/learningplan/v1/learningplans/enrollments", "POST", body)
        self._raise_if_rejected(result, "learning plan")
        logger.info(f"✓ Enrolled user {user_id} in learning plan {learning_plan_id}")
        return result

    async def unenroll_user_from_course(self, user_id: str, course_id: str) -> dict:
        result = await self.api_request(f"/learn/v1/enrollments/courses/{course_id}/users/{user_id}", "DELETE")
        logger.info(f"✓ Unenrolled user {user_id} from course {course_id}")
        return result

    async def unenroll_user_from_learning_plan(self, user_id: str, learning_plan_id: str) -> dict:
        result = await self.api_request(
            f"/learn/v1/enrollments/learning-plans/{learning_plan_id}/users/{user_id}", "DELETE"
        )
        logger.info(f"✓ Unenrolled user {user_id} from learning plan {learning_plan_id}")
        return result

    @staticmethod
    def _raise_if_rejected(result: Any, resource: str):
        """Docebo answers 200 with an `errors` map when it refuses an enrollment"""
        data = result.get("data") if isinstance(result, dict) else None
        if not isinstance(data, dict) or data.get("enrolled"):
            return
        errors = data.get("errors") or {}
        if not isinstance(errors, dict):
            return
        for reason, message in ENROLLMENT_REJECTIONS:
            if errors.get(reason):
                raise EnrollmentRejectedError(message.format(resource=resource), reason, errors)
        if "enrolled" in data and any(errors.values()):
            raise EnrollmentRejectedError("Unknown enrollment restriction", "unknown", errors)

    # Enrollment lookups

    async def probe_endpoints(
        self,
        endpoints: List[str],
        params: Optional[dict] = None,
        accept: Optional[Callable[[dict], bool]] = None,
    ) -> Tuple[Optional[str], List[dict]]:
        """
        Try endpoint variants in order; first one with (accepted) records wins

        Args:
            endpoints: Endpoint variants, possibly carrying their own query strings
            params: Query parameters sent to every variant
            accept: Optional per-record filter; a variant whose records are all
                rejected counts as empty

        Returns:
            (endpoint, records) or (None, []) when every variant failed or was empty
        """
        for endpoint in endpoints:
            try:
                items = extract_items(await self.api_request(endpoint, params=params))
            except DoceboAPIError as e:
                logger.info(f"Endpoint {endpoint} failed ({e.status_code}), trying next variant")
                continue
            if accept is not None:
                items = [item for item in items if accept(item)]
            if items:
                logger.info(f"📊 {len(items)} record(s) from {endpoint}")
                return endpoint, items
        return None, []

    def _enrollment_endpoints(self, kind: str, user_id: str) -> List[Tuple[str, dict]]:
        if kind == "course":
            return [
                ("/course/v1/courses/enrollments", {"user_id[]": user_id}),
                ("/course/v1/courses/enrollments", {"user_id": user_id}),
                ("/learn/v1/enrollments", {"user_id": user_id}),
            ]
        return [
            ("/learningplan/v1/learningplans/enrollments", {"user_id[]": user_id}),
            ("/learningplan/v1/learningplans/enrollments", {"user_id": user_id}),
            (f"/manage/v1/user/{user_id}/learningplans", {}),
        ]

    async def get_enrollment_pages(
        self,
        kind: str,
        user_id: str,
        pages: int = 1,
        page_size: int = REMOTE_PAGE_SIZE,
    ) -> dict:
        """
        Fetch up to `pages` remote pages of a user's course or learning plan enrollments

        Args:
            kind: "course" or "learning_plan"
            user_id: Docebo user id
            pages: Remote pages to fetch (capped at MAX_REMOTE_PAGES)
            page_size: Records per remote page

        Returns:
            dict with enrollments, pages_fetched, has_more, endpoint and success
        """
        pages = max(1, min(pages, MAX_REMOTE_PAGES))

        for endpoint, base_params in self._enrollment_endpoints(kind, user_id):
            collected = []
            pages_fetched = 0
            has_more = False
            try:
                for page in range(1, pages + 1):
                    result = await self.api_request(endpoint, params={
                        **base_params, "page": page, "page_size": page_size
                    })
                    items = extract_items(result)
                    if not items:
                        has_more = False
                        break
                    collected.extend(item for item in items if _belongs_to_user(item, user_id))
                    pages_fetched += 1

                    data = result.get("data") if isinstance(result, dict) else None
                    has_more = (isinstance(data, dict) and data.get("has_more_data") is True) or len(items) >= page_size
                    if not has_more:
                        break
                    if page < pages:
                        await asyncio.sleep(REMOTE_PAGE_DELAY)
            except DoceboAPIError as e:
                logger.info(f"{kind} enrollment endpoint {endpoint} failed ({e.status_code})")
                continue

            if collected:
                logger.info(f"✓ {len(collected)} {kind} enrollments for user {user_id} from {endpoint}")
                return {
                    "enrollments": collected,
                    "pages_fetched": pages_fetched,
                    "has_more": has_more,
                    "endpoint": endpoint,
                    "success": True,
                }

        return {
            "enrollments": [],
            "pages_fetched": 0,
            "has_more": False,
            "endpoint": None,
            "success": False,
        }

    async def get_user_all_enrollments(self, user_id: str, pages: int = 1) -> dict:
        """Formatted course and learning plan enrollments for a user"""
        courses = await self.get_enrollment_pages("course", user_id, pages)
        plans = await self.get_enrollment_pages("learning_plan", user_id, pages)
        course_items = [normalizers.format_course_enrollment(e) for e in courses["enrollments"]]
        plan_items = [normalizers.format_learning_plan_enrollment(e) for e in plans["enrollments"]]
        return {
            "courses": course_items,
            "learning_plans": plan_items,
            "total_courses": len(course_items),
            "total_learning_plans": len(plan_items),
            "pages_fetched": courses["pages_fetched"] + plans["pages_fetched"],
            "has_more": courses["has_more"] or plans["has_more"],
            "success": courses["success"] or plans["success"],
        }


# Global instance
docebo_api = None


def get_docebo_api() -> DoceboAPI:
    """Get or create the shared Docebo API client (raises ConfigError when unconfigured)"""
    global docebo_api
    if docebo_api is None:
        docebo_api = DoceboAPI(load_docebo_config())
    return docebo_api
