"""HTTP client for the DocMarket API."""

import logging
from typing import Any

import httpx

logger = logging.getLogger("docmarket.client")

DEFAULT_TIMEOUT = 15.0


class ApiError(Exception):
    """A failed API call. ``status_code`` is 0 when the server was never reached."""

    def __init__(self, status_code: int, message: str, error: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.error = error
        super().__init__(message)


class ApiClient:
    """Thin JSON client that attaches the bearer token when one is set."""

    def __init__(self, base_url: str = "", http: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token: str | None = None
        self.users = UsersResource(self)
        self.services = ServicesResource(self)
        self.documents = DocumentsResource(self)
        self.contact = ContactResource(self)

    def close(self) -> None:
        self.http.close()

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self.http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.error("API Error (%s %s): %s", method, path, exc)
            raise ApiError(0, f"Network error: {exc}") from exc

    def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and return the decoded JSON body. Raises ApiError."""
        response = self._send(method, path, **kwargs)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.error("Non-JSON response from API (%s): %s", path, response.text[:200])
            raise ApiError(response.status_code, "Received non-JSON response from server")

        payload = response.json()
        if response.is_error:
            message = payload.get("detail") or payload.get("message") or "API request failed"
            logger.error("API Error (%s): %s", path, message)
            raise ApiError(response.status_code, str(message), payload.get("error"))
        return payload

    def fetch_text(self, url: str) -> str:
        """Download a static file as text."""
        response = self._send("GET", url)
        if response.is_error:
            reason = f"Failed to fetch text: {response.status_code} {response.reason_phrase}"
            raise ApiError(response.status_code, reason)
        return response.text


class _Resource:
    def __init__(self, api: ApiClient) -> None:
        self.api = api


class UsersResource(_Resource):
    def register(self, email: str, password: str, phone: str | None = None) -> dict:
        body = {"email": email, "phone": phone, "password": password}
        return self.api.request("POST", "/api/users/register", json=body)

    def login(self, email: str, password: str) -> dict:
        return self.api.request("POST", "/api/users/login", json={"email": email, "password": password})

    def request_reset(self, email: str) -> dict:
        return self.api.request("POST", "/api/users/request-reset", json={"email": email})

    def reset_password(self, token: str, new_password: str) -> dict:
        return self.api.request("POST", "/api/users/reset-password", json={"token": token, "newPassword": new_password})

    def profile(self) -> dict:
        return self.api.request("GET", "/api/users/profile")

    def get_all(self, search: str | None = None) -> dict:
        return self.api.request("GET", "/api/users", params=_params(search=search))

    def get(self, user_id: int) -> dict:
        return self.api.request("GET", f"/api/users/{user_id}")

    def create(self, body: dict) -> dict:
        return self.api.request("POST", "/api/users", json=body)

    def update(self, user_id: int, body: dict) -> dict:
        return self.api.request("PUT", f"/api/users/{user_id}", json=body)

    def delete(self, user_id: int) -> dict:
        return self.api.request("DELETE", f"/api/users/{user_id}")


class ServicesResource(_Resource):
    def get_all(self, search: str | None = None) -> dict:
        return self.api.request("GET", "/api/services", params=_params(search=search))

    def get(self, service_id: int) -> dict:
        return self.api.request("GET", f"/api/services/{service_id}")

    def create(self, data: dict, files: dict | None = None) -> dict:
        return self.api.request("POST", "/api/services", data=data, files=files)

    def update(self, service_id: int, data: dict, files: dict | None = None) -> dict:
        return self.api.request("PUT", f"/api/services/{service_id}", data=data, files=files)

    def delete(self, service_id: int) -> dict:
        return self.api.request("DELETE", f"/api/services/{service_id}")


class DocumentsResource(_Resource):
    def get_all(self, category: str | None = None, search: str | None = None) -> dict:
        return self.api.request("GET", "/api/documents", params=_params(category=category, search=search))

    def get(self, document_id: int) -> dict:
        return self.api.request("GET", f"/api/documents/{document_id}")

    def preview(self, document_id: int) -> dict:
        return self.api.request("GET", f"/api/documents/{document_id}/preview")

    def create(self, data: dict, files: dict) -> dict:
        return self.api.request("POST", "/api/documents", data=data, files=files)

    def update(self, document_id: int, data: dict, files: dict | None = None) -> dict:
        return self.api.request("PUT", f"/api/documents/{document_id}", data=data, files=files)

    def delete(self, document_id: int) -> dict:
        return self.api.request("DELETE", f"/api/documents/{document_id}")


class ContactResource(_Resource):
    def send(self, name: str, email: str, subject: str, message: str) -> dict:
        body = {"name": name, "email": email, "subject": subject, "message": message}
        return self.api.request("POST", "/api/contact/send", json=body)


def _params(**values: str | None) -> dict[str, str]:
    return {key: value for key, value in values.items() if value}
