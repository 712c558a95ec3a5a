"""End-to-end workflow tests against the scripted page driver."""

import json
import logging
from unittest.mock import Mock

import pytest

from story_linker.core.diagnostics import list_screenshots
from story_linker.core.selector_catalog import SelectorCatalog, load_selector_catalog
from story_linker.models import AuthBundle, LinkRequest
from story_linker.workflow import link_story
from story_linker.workflow.steps import (
    PROJECT_INJECTION_SCRIPT,
    SCROLL_TO_BOTTOM_SCRIPT,
    TEXT_SCAN_CLICK_SCRIPT,
    build_link_steps,
)

from conftest import SECRET_COOKIE_VALUE, SECRET_STORAGE_VALUE, STORY_URL, FakePageDriver


def _run(driver, link_request, auth_bundle, settings, **kwargs):
    return link_story(link_request, auth_bundle, settings=settings, driver_factory=lambda s: driver, **kwargs)


def test_missing_input_fails_before_launching_browser(auth_bundle, settings):
    """Blank fields are rejected without ever calling the driver factory."""
    factory = Mock()
    request = LinkRequest(pb_story_url=STORY_URL, ado_project_name="  ", ado_story_id="4242")

    outcome = link_story(request, auth_bundle, settings=settings, driver_factory=factory)

    assert outcome.success is False
    assert outcome.failed_step == "Input Validation"
    assert "adoProjectName" in outcome.message
    factory.assert_not_called()


def test_missing_cookies_fail_input_validation(link_request, settings):
    factory = Mock()

    outcome = link_story(link_request, AuthBundle(), settings=settings, driver_factory=factory)

    assert outcome.failed_step == "Input Validation"
    factory.assert_not_called()


def test_successful_run_links_story(link_request, auth_bundle, settings, fake_driver):
    """All ten steps succeed and the browser is closed once."""
    outcome = _run(fake_driver, link_request, auth_bundle, settings, run_id="run-ok")

    assert outcome.success is True
    assert outcome.failed_step is None
    assert "4242" in outcome.message
    assert "stepFailed" not in outcome.to_dict()
    assert fake_driver.close_count == 1


def test_successful_run_follows_step_order(link_request, auth_bundle, settings, fake_driver, catalog):
    _run(fake_driver, link_request, auth_bundle, settings)

    calls = fake_driver.calls
    hover_at = calls.index(("hover", catalog.one("ado_integration_entry")))
    push_at = calls.index(("click", catalog.one("push_button")))
    tab_at = calls.index(("click", catalog.one("link_tab")))
    link_at = calls.index(("click", catalog.one("link_button")))
    assert hover_at < push_at < tab_at < link_at
    assert ("press", "ArrowDown") in calls
    assert ("press", "Enter") in calls
    assert ("press", "Tab") in calls


def test_successful_run_writes_ordered_screenshots(link_request, auth_bundle, settings, fake_driver):
    _run(fake_driver, link_request, auth_bundle, settings, run_id="run-shots")

    names = list_screenshots(settings.screenshot_dir, "run-shots")
    assert names
    assert names[0].startswith("01_")


def test_only_matching_cookies_are_injected(link_request, auth_bundle, settings, fake_driver):
    _run(fake_driver, link_request, auth_bundle, settings)

    assert [c["name"] for c in fake_driver.cookies] == ["pb_session"]
    assert any(SECRET_STORAGE_VALUE in script for script in fake_driver.init_scripts)


def test_auth_values_never_logged(link_request, auth_bundle, settings, fake_driver, caplog):
    caplog.set_level(logging.DEBUG)

    _run(fake_driver, link_request, auth_bundle, settings)

    assert SECRET_COOKIE_VALUE not in caplog.text
    assert SECRET_STORAGE_VALUE not in caplog.text


def test_login_redirect_reports_authentication_failure(link_request, auth_bundle, settings):
    """Landing on a login page stops the run before any UI interaction."""
    driver = FakePageDriver(url_after_goto="https://acme.productboard.com/login?next=/feature-board")

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.success is False
    assert outcome.failed_step == "Verify Authentication"
    assert "login" in outcome.message
    assert driver.targets("click") == []
    assert driver.close_count == 1


def test_project_type_ahead_falls_back_to_direct_option(link_request, auth_bundle, settings, catalog):
    dropdown_input = f"{catalog.one('project_dropdown')} >> {catalog.one('project_dropdown_input')}"
    option = catalog.one("project_option", project_name="Healthcare")
    driver = FakePageDriver(fail=lambda action, target: action == "fill" and target == dropdown_input)

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.success is True
    assert option in driver.targets("click")
    assert "Healthcare" in option


def test_all_project_strategies_failing_names_the_step(link_request, auth_bundle, settings, catalog):
    dropdown_input = f"{catalog.one('project_dropdown')} >> {catalog.one('project_dropdown_input')}"
    option = catalog.one("project_option", project_name="Healthcare")

    def fail(action, target):
        return (
            (action == "fill" and target == dropdown_input)
            or (action == "is_visible" and target == option)
            or (action == "evaluate" and target == PROJECT_INJECTION_SCRIPT)
        )

    driver = FakePageDriver(fail=fail)

    outcome = _run(driver, link_request, auth_bundle, settings, run_id="run-project")

    assert outcome.success is False
    assert outcome.failed_step == "Project Dropdown Selection"
    assert outcome.message.startswith("Error during step 'Project Dropdown Selection':")
    assert "type-ahead" in outcome.message
    assert "dom injection" in outcome.message
    assert any("error_project_dropdown_selection" in path for path in driver.screenshots)
    assert driver.close_count == 1


def test_preview_falls_back_to_dom_scan(link_request, auth_bundle, settings, catalog):
    previews = set(catalog.many("preview", story_id="4242"))
    driver = FakePageDriver(fail=lambda action, target: action == "is_visible" and target in previews)

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.success is True
    assert TEXT_SCAN_CLICK_SCRIPT in driver.targets("evaluate")


def test_preview_exhaustion_fails_the_run(link_request, auth_bundle, settings, catalog):
    previews = set(catalog.many("preview", story_id="4242"))
    driver = FakePageDriver(
        fail=lambda action, target: action == "is_visible" and target in previews,
        eval_result=False,
    )

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.failed_step == "Click Work Item Preview"


@pytest.mark.parametrize(
    "fail_action, expected_step",
    [
        ("goto", "Navigate to PB Story"),
        ("open_page", "Create Page"),
        ("hover", "Open ADO Integration"),
        ("click", "Click Push Button"),
        (None, None),
    ],
)
def test_browser_closed_exactly_once(link_request, auth_bundle, settings, fail_action, expected_step):
    driver = FakePageDriver(fail=lambda action, target: action == fail_action)

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.failed_step == expected_step
    assert driver.close_count == 1


def test_push_button_failure(link_request, auth_bundle, settings, catalog):
    push = set(catalog.many("push_button"))
    driver = FakePageDriver(fail=lambda action, target: action == "wait_for:visible" and target in push)

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.failed_step == "Click Push Button"
    assert "All strategies failed" in outcome.message


def test_extra_override_selectors_each_get_a_strategy(link_request, tmp_path):
    defaults = load_selector_catalog().many("push_button")
    override = tmp_path / "selectors.json"
    override.write_text(json.dumps({"push_button": defaults + ["button.push-v2"]}), encoding="utf-8")

    steps = {step.name: step for step in build_link_steps(link_request, load_selector_catalog(override))}

    assert [s.name for s in steps["Click Push Button"].strategies] == [
        "exact text",
        "attribute-qualified button",
        "nested container button",
        "selector 4",
    ]


def test_override_only_selector_can_win_the_step(link_request, auth_bundle, settings, catalog, tmp_path):
    defaults = catalog.many("push_button")
    override = tmp_path / "selectors.json"
    override.write_text(json.dumps({"push_button": defaults + ["button.push-v2"]}), encoding="utf-8")
    driver = FakePageDriver(fail=lambda action, target: action == "wait_for:visible" and target in defaults)

    outcome = _run(driver, link_request, auth_bundle, settings, catalog=load_selector_catalog(override))

    assert outcome.success is True
    assert "button.push-v2" in driver.targets("click")


def test_empty_selector_list_fails_the_step_cleanly(link_request, auth_bundle, settings, fake_driver, tmp_path):
    override = tmp_path / "selectors.json"
    override.write_text(json.dumps({"ado_integration_entry": []}), encoding="utf-8")

    outcome = _run(fake_driver, link_request, auth_bundle, settings, catalog=load_selector_catalog(override))

    assert outcome.failed_step == "Open ADO Integration"
    assert "No strategies configured" in outcome.message
    assert fake_driver.close_count == 1


def test_launch_failure_reports_browser_launch(link_request, auth_bundle, settings):
    factory = Mock(side_effect=RuntimeError("chromium missing"))

    outcome = link_story(link_request, auth_bundle, settings=settings, driver_factory=factory)

    assert outcome.failed_step == "Browser Launch"
    assert "chromium missing" in outcome.message


def test_unexpected_error_is_reported_and_browser_closed(link_request, auth_bundle, settings, fake_driver):
    outcome = _run(fake_driver, link_request, auth_bundle, settings, catalog=SelectorCatalog({}))

    assert outcome.success is False
    assert outcome.failed_step == "Unexpected Error"
    assert fake_driver.close_count == 1


def test_screenshot_failures_do_not_change_outcome(link_request, auth_bundle, settings):
    driver = FakePageDriver(screenshot_error=OSError("disk full"))

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.success is True


def test_optional_steps_do_not_fail_the_run(link_request, auth_bundle, settings, catalog):
    """Integrations expansion and the completion wait are best-effort."""
    sections = set(catalog.many("integrations_section"))

    def fail(action, target):
        return (
            (action == "wait_for:visible" and target in sections)
            or (action == "evaluate" and target == SCROLL_TO_BOTTOM_SCRIPT)
            or action == "wait_for:hidden"
        )

    driver = FakePageDriver(fail=fail)

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.success is True


def test_conflict_dialog_absent_is_success(link_request, auth_bundle, settings, catalog):
    conflict = catalog.one("conflict_dialog")
    driver = FakePageDriver(fail=lambda action, target: action == "is_visible" and target == conflict)

    outcome = _run(driver, link_request, auth_bundle, settings)

    assert outcome.success is True
    assert catalog.one("keep_source_option") not in driver.targets("click")


def test_conflict_dialog_keeps_productboard_data(link_request, auth_bundle, settings, fake_driver, catalog):
    outcome = _run(fake_driver, link_request, auth_bundle, settings)

    clicks = fake_driver.targets("click")
    assert outcome.success is True
    assert clicks.index(catalog.one("keep_source_option")) < clicks.index(catalog.one("conflict_link_button"))
