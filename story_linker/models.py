"""Value objects passed through the story-link workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import InputValidationError

_SAME_SITE_MAP = {
    "strict": "Strict",
    "lax": "Lax",
    "none": "None",
    "no_restriction": "None",
}


def _parse_expires(value: Any) -> float:
    """Epoch seconds, or -1 (session cookie) for blank and non-numeric exports like ``"Session"``."""
    try:
        expires = float(value)
    except (TypeError, ValueError):
        return -1
    return expires if expires > 0 else -1


def normalize_same_site(value: Optional[str]) -> str:
    """Map browser-extension sameSite spellings onto Playwright's enum."""
    if not value:
        return "Lax"
    return _SAME_SITE_MAP.get(str(value).strip().lower(), "Lax")


@dataclass(frozen=True)
class LinkRequest:
    pb_story_url: str
    ado_project_name: str
    ado_story_id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkRequest":
        return cls(
            pb_story_url=str(data.get("pbStoryUrl") or "").strip(),
            ado_project_name=str(data.get("adoProjectName") or "").strip(),
            ado_story_id=str(data.get("adoStoryId") or "").strip(),
        )

    def validate(self) -> None:
        missing = [
            name
            for name, value in (
                ("pbStoryUrl", self.pb_story_url),
                ("adoProjectName", self.ado_project_name),
                ("adoStoryId", self.ado_story_id),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise InputValidationError("Missing required input: " + ", ".join(missing) + ".")

    def to_dict(self) -> Dict[str, str]:
        return {
            "pbStoryUrl": self.pb_story_url,
            "adoProjectName": self.ado_project_name,
            "adoStoryId": self.ado_story_id,
        }


@dataclass
class CookieRecord:
    name: str
    value: str = field(repr=False)
    domain: str
    path: str = "/"
    expires: float = -1
    http_only: bool = False
    secure: bool = False
    same_site: str = "Lax"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CookieRecord":
        # Chrome extension exports use expirationDate; Playwright uses expires.
        expires = data.get("expires") or data.get("expirationDate")
        return cls(
            name=str(data.get("name") or ""),
            value=str(data.get("value") or ""),
            domain=str(data.get("domain") or ""),
            path=data.get("path") or "/",
            expires=_parse_expires(expires),
            http_only=bool(data.get("httpOnly", data.get("http_only", False))),
            secure=bool(data.get("secure", False)),
            same_site=normalize_same_site(data.get("sameSite", data.get("same_site"))),
        )

    def to_playwright(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path or "/",
            "expires": self.expires if self.expires else -1,
            "httpOnly": bool(self.http_only),
            "secure": bool(self.secure),
            "sameSite": normalize_same_site(self.same_site),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expires": self.expires,
            "httpOnly": self.http_only,
            "secure": self.secure,
            "sameSite": self.same_site,
        }


@dataclass
class AuthBundle:
    """Captured ProductBoard session: cookies plus local storage."""

    cookies: List[CookieRecord] = field(default_factory=list)
    local_storage: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthBundle":
        raw_cookies = data.get("cookies")
        if raw_cookies is None:
            raw_cookies = data.get("pbCookies") or []
        raw_storage = data.get("localStorage")
        if raw_storage is None:
            raw_storage = data.get("pbLocalStorage") or {}
        cookies = [CookieRecord.from_dict(c) for c in raw_cookies if isinstance(c, dict)]
        storage = {str(k): str(v) for k, v in dict(raw_storage).items()}
        return cls(cookies=cookies, local_storage=storage)

    def __repr__(self) -> str:
        return f"AuthBundle(cookies={len(self.cookies)}, local_storage={len(self.local_storage)})"


@dataclass
class StepResult:
    step_name: str
    success: bool
    message: str
    screenshot_ref: Optional[str] = None


@dataclass
class WorkflowOutcome:
    success: bool
    message: str
    failed_step: Optional[str] = None
    run_id: Optional[str] = None

    @classmethod
    def succeeded(cls, message: str, run_id: Optional[str] = None) -> "WorkflowOutcome":
        return cls(success=True, message=message, run_id=run_id)

    @classmethod
    def failed(cls, step_name: str, detail: str, run_id: Optional[str] = None) -> "WorkflowOutcome":
        return cls(
            success=False,
            message=f"Error during step '{step_name}': {detail}",
            failed_step=step_name,
            run_id=run_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.failed_step:
            payload["stepFailed"] = self.failed_step
        if self.run_id:
            payload["runId"] = self.run_id
        return payload
