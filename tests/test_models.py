"""Value objects: request validation, cookie conversion and outcome JSON."""

import pytest

from story_linker.errors import InputValidationError
from story_linker.models import (
    AuthBundle,
    CookieRecord,
    LinkRequest,
    WorkflowOutcome,
    normalize_same_site,
)


def test_link_request_from_wire_names_strips_values():
    req = LinkRequest.from_dict(
        {"pbStoryUrl": " https://acme.productboard.com/x ", "adoProjectName": "Healthcare ", "adoStoryId": " 42"}
    )

    assert req.pb_story_url == "https://acme.productboard.com/x"
    assert req.ado_project_name == "Healthcare"
    assert req.ado_story_id == "42"


def test_link_request_validate_lists_every_missing_field():
    req = LinkRequest(pb_story_url="", ado_project_name="Healthcare", ado_story_id="  ")

    with pytest.raises(InputValidationError) as excinfo:
        req.validate()

    assert excinfo.value.step_name == "Input Validation"
    assert "pbStoryUrl" in excinfo.value.detail
    assert "adoStoryId" in excinfo.value.detail
    assert "adoProjectName" not in excinfo.value.detail


@pytest.mark.parametrize(
    "raw, expected",
    [("strict", "Strict"), ("LAX", "Lax"), ("no_restriction", "None"), ("unspecified", "Lax"), (None, "Lax")],
)
def test_normalize_same_site(raw, expected):
    assert normalize_same_site(raw) == expected


def test_cookie_defaults_in_browser_schema():
    cookie = CookieRecord.from_dict({"name": "pb", "value": "v", "domain": ".productboard.com"})

    assert cookie.to_playwright() == {
        "name": "pb",
        "value": "v",
        "domain": ".productboard.com",
        "path": "/",
        "expires": -1,
        "httpOnly": False,
        "secure": False,
        "sameSite": "Lax",
    }


def test_cookie_from_extension_export():
    cookie = CookieRecord.from_dict(
        {
            "name": "pb",
            "value": "v",
            "domain": ".productboard.com",
            "expirationDate": 1893456000.5,
            "httpOnly": True,
            "secure": True,
            "sameSite": "no_restriction",
        }
    )

    payload = cookie.to_playwright()
    assert payload["expires"] == 1893456000.5
    assert payload["httpOnly"] is True
    assert payload["sameSite"] == "None"


@pytest.mark.parametrize("raw", ["Session", "", None, "1893456000", "-5"])
def test_cookie_expires_never_raises(raw):
    cookie = CookieRecord.from_dict({"name": "pb", "value": "v", "domain": ".productboard.com", "expires": raw})

    expected = 1893456000.0 if raw == "1893456000" else -1
    assert cookie.to_playwright()["expires"] == expected


def test_cookie_value_hidden_from_repr():
    cookie = CookieRecord(name="pb", value="top-secret", domain=".productboard.com")

    assert "top-secret" not in repr(cookie)
    assert "top-secret" not in repr(AuthBundle(cookies=[cookie], local_storage={"k": "also-secret"}))


def test_auth_bundle_accepts_trigger_field_names():
    bundle = AuthBundle.from_dict(
        {
            "pbCookies": [{"name": "a", "value": "1", "domain": ".productboard.com"}, "junk"],
            "pbLocalStorage": {"token": "abc"},
        }
    )

    assert [c.name for c in bundle.cookies] == ["a"]
    assert bundle.local_storage == {"token": "abc"}


def test_failed_outcome_json():
    outcome = WorkflowOutcome.failed("Click Push Button", "All strategies failed", run_id="r1")

    assert outcome.to_dict() == {
        "success": False,
        "message": "Error during step 'Click Push Button': All strategies failed",
        "stepFailed": "Click Push Button",
        "runId": "r1",
    }


def test_successful_outcome_json_has_no_failed_step():
    assert WorkflowOutcome.succeeded("done").to_dict() == {"success": True, "message": "done"}
