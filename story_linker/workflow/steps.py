"""The ten ProductBoard UI steps that link a story to an ADO work item.

Each step lists its strategies in priority order. Selectors come from the
``SelectorCatalog``; only the interaction logic lives here.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from ..core.selector_catalog import SelectorCatalog
from ..models import LinkRequest
from .executor import Step
from .strategies import Strategy, StepContext, StrategyAction

logger = logging.getLogger(__name__)

EXPAND_INTEGRATIONS_STEP = "Expand Integrations Section"
OPEN_ADO_INTEGRATION_STEP = "Open ADO Integration"
CLICK_PUSH_STEP = "Click Push Button"
LINK_TAB_STEP = "Click Link to Existing Issue Tab"
PROJECT_SELECTION_STEP = "Project Dropdown Selection"
WORK_ITEM_STEP = "Fill Work Item ID"
PREVIEW_STEP = "Click Work Item Preview"
LINK_BUTTON_STEP = "Click Link Button"
CONFLICT_STEP = "Check for Conflict Resolution"
COMPLETION_STEP = "Wait for Success"

ACTION_TIMEOUT_MS = 5000
PROBE_TIMEOUT_MS = 1000

SCROLL_TO_BOTTOM_SCRIPT = "() => window.scrollTo(0, document.body.scrollHeight)"

PROJECT_INJECTION_SCRIPT = """
({ projectName, hints }) => {
    const lowered = hints.map((h) => h.toLowerCase());
    const inputs = Array.from(document.querySelectorAll('input')).filter((input) => {
        const placeholder = (input.placeholder || '').toLowerCase();
        const label = (input.getAttribute('aria-label') || '').toLowerCase();
        return lowered.some((h) => placeholder.includes(h) || label.includes(h));
    });
    if (inputs.length === 0) {
        return false;
    }
    inputs[0].value = projectName;
    inputs[0].dispatchEvent(new Event('input', { bubbles: true }));
    inputs[0].dispatchEvent(new Event('change', { bubbles: true }));
    return true;
}
"""

WORK_ITEM_INJECTION_SCRIPT = """
({ storyId, projectName }) => {
    const inputs = Array.from(document.querySelectorAll('input:not([disabled])')).filter((input) =>
        input.offsetParent !== null &&
        !(projectName && (input.value || '').includes(projectName)) &&
        !(input.getAttribute('aria-label') || '').toLowerCase().includes('project'));
    if (inputs.length === 0) {
        return false;
    }
    inputs[0].value = storyId;
    inputs[0].dispatchEvent(new Event('input', { bubbles: true }));
    inputs[0].dispatchEvent(new Event('change', { bubbles: true }));
    return true;
}
"""

# Clicks the innermost visible element whose text matches one of the needles.
TEXT_SCAN_CLICK_SCRIPT = """
({ needles, tags, exact }) => {
    const matches = (el) => {
        const text = (el.textContent || '').trim();
        return needles.some((n) => (exact ? text === n : text.includes(n)));
    };
    const candidates = Array.from(document.querySelectorAll(tags))
        .filter((el) => el.offsetParent !== null && matches(el));
    const innermost = candidates.filter((el) => !candidates.some((other) => other !== el && el.contains(other)));
    const target = innermost[0] || candidates[0];
    if (!target) {
        return false;
    }
    target.click();
    return true;
}
"""


def _click_when_visible(selector: str):
    def action(ctx: StepContext, timeout_ms: int) -> None:
        ctx.driver.wait_for(selector, "visible", timeout_ms)
        ctx.driver.click(selector, ACTION_TIMEOUT_MS)

    return action


def _click_if_present(selector: str):
    """Click only if the element shows up within the strategy's probe window."""

    def action(ctx: StepContext, timeout_ms: int) -> None:
        if not ctx.driver.is_visible(selector, timeout_ms):
            raise RuntimeError(f"Not visible within {timeout_ms}ms: {selector}")
        ctx.driver.click(selector, ACTION_TIMEOUT_MS)

    return action


def _text_scan_click(needles: List[str], tags: str, exact: bool):
    def action(ctx: StepContext, timeout_ms: int) -> None:
        clicked = ctx.driver.evaluate(TEXT_SCAN_CLICK_SCRIPT, {"needles": needles, "tags": tags, "exact": exact})
        if not clicked:
            raise RuntimeError(f"DOM scan found no element matching {needles!r}")

    return action


def _expand_section(selector: str):
    def action(ctx: StepContext, timeout_ms: int) -> None:
        ctx.driver.wait_for(selector, "visible", timeout_ms)
        ctx.driver.scroll_into_view(selector, ACTION_TIMEOUT_MS)
        ctx.driver.click(selector, ACTION_TIMEOUT_MS)

    return action


def _scroll_to_bottom(ctx: StepContext, timeout_ms: int) -> None:
    ctx.driver.evaluate(SCROLL_TO_BOTTOM_SCRIPT)


def _hover(selector: str):
    def action(ctx: StepContext, timeout_ms: int) -> None:
        ctx.driver.wait_for(selector, "visible", timeout_ms)
        ctx.driver.hover(selector, ACTION_TIMEOUT_MS)

    return action


def _open_project_dropdown(ctx: StepContext) -> None:
    dropdown = ctx.catalog.one("project_dropdown")
    ctx.driver.wait_for(dropdown, "visible", 10000)
    ctx.driver.click(dropdown, ACTION_TIMEOUT_MS)
    ctx.driver.wait(1000)


def _type_ahead_project(ctx: StepContext, timeout_ms: int) -> None:
    field = f"{ctx.catalog.one('project_dropdown')} >> {ctx.catalog.one('project_dropdown_input')}"
    ctx.driver.fill(field, ctx.request.ado_project_name, timeout_ms)
    ctx.driver.press("ArrowDown")
    ctx.driver.press("Enter")


def _inject_project(ctx: StepContext, timeout_ms: int) -> None:
    injected = ctx.driver.evaluate(
        PROJECT_INJECTION_SCRIPT,
        {
            "projectName": ctx.request.ado_project_name,
            "hints": ctx.catalog.many("project_input_hints"),
        },
    )
    if not injected:
        raise RuntimeError("No suitable input found for project selection")


def _fill_work_item(selector: str):
    def action(ctx: StepContext, timeout_ms: int) -> None:
        driver = ctx.driver
        driver.wait_for(selector, "visible", timeout_ms)
        driver.fill(selector, "", ACTION_TIMEOUT_MS)
        driver.fill(selector, ctx.request.ado_story_id, ACTION_TIMEOUT_MS)
        driver.dispatch_event(selector, "input")
        driver.dispatch_event(selector, "change")
        # Tab forces the field's validation and triggers the preview lookup.
        driver.press("Tab")

    return action


def _inject_work_item(ctx: StepContext, timeout_ms: int) -> None:
    injected = ctx.driver.evaluate(
        WORK_ITEM_INJECTION_SCRIPT,
        {"storyId": ctx.request.ado_story_id, "projectName": ctx.request.ado_project_name},
    )
    if not injected:
        raise RuntimeError("No visible input available for the work item id")


def _second_confirmation(ctx: StepContext) -> None:
    selector = ctx.catalog.one("second_link_button")
    if ctx.driver.is_visible(selector, 3000):
        logger.info("[Steps] Nested confirmation dialog present; clicking its Link button.")
        ctx.driver.click(selector, ACTION_TIMEOUT_MS)


def _resolve_conflict(ctx: StepContext, timeout_ms: int) -> None:
    if not ctx.driver.is_visible(ctx.catalog.one("conflict_dialog"), timeout_ms):
        logger.info("[Steps] No conflict resolution dialog within wait window.")
        return
    logger.info("[Steps] Conflict dialog detected; keeping ProductBoard data.")
    ctx.driver.click(ctx.catalog.one("keep_source_option"), ACTION_TIMEOUT_MS)
    ctx.driver.click(ctx.catalog.one("conflict_link_button"), ACTION_TIMEOUT_MS)
    ctx.driver.wait(2000)


def _await_dialog_hidden(ctx: StepContext, timeout_ms: int) -> None:
    ctx.driver.wait_for(ctx.catalog.one("dialog"), "hidden", timeout_ms)


def _per_selector(
    selectors: Sequence[str],
    make_action: Callable[[str], StrategyAction],
    names: Sequence[str] = (),
    first_timeout_ms: int = ACTION_TIMEOUT_MS,
) -> List[Strategy]:
    """One strategy per catalog selector, in catalog order.

    Known positions get a descriptive name; extra selectors from an override
    file are named by position.
    """
    strategies = []
    for index, selector in enumerate(selectors):
        name = names[index] if index < len(names) else f"selector {index + 1}"
        timeout = first_timeout_ms if index == 0 else ACTION_TIMEOUT_MS
        strategies.append(Strategy(name, make_action(selector), timeout))
    return strategies


def build_link_steps(request: LinkRequest, catalog: SelectorCatalog) -> List[Step]:
    story_id = request.ado_story_id
    project_name = request.ado_project_name

    section_strategies = _per_selector(
        catalog.many("integrations_section"),
        _expand_section,
        ("test-id section", "text match", "decorative class"),
    )
    section_strategies.append(Strategy("scroll to bottom", _scroll_to_bottom, ACTION_TIMEOUT_MS))

    entry_strategies = _per_selector(
        catalog.many("ado_integration_entry"),
        _hover,
        ("precise entry", "text container"),
        first_timeout_ms=10000,
    )

    push_strategies = _per_selector(
        catalog.many("push_button"),
        _click_when_visible,
        ("exact text", "attribute-qualified button", "nested container button"),
    )

    tab_strategies = _per_selector(
        catalog.many("link_tab"),
        _click_when_visible,
        ("role and name", "button role", "nth-child class"),
        first_timeout_ms=10000,
    )

    project_strategies = [
        Strategy("type-ahead", _type_ahead_project, ACTION_TIMEOUT_MS),
        Strategy(
            "direct option click",
            _click_if_present(catalog.one("project_option", project_name=project_name)),
            3000,
        ),
        Strategy("dom injection", _inject_project, ACTION_TIMEOUT_MS),
    ]

    work_item_strategies = [
        Strategy(f"input selector {index}", _fill_work_item(selector), PROBE_TIMEOUT_MS)
        for index, selector in enumerate(catalog.many("work_item_inputs"), start=1)
    ]
    work_item_strategies.append(Strategy("dom injection", _inject_work_item, ACTION_TIMEOUT_MS))

    preview_strategies = [
        Strategy(f"preview selector {index}", _click_if_present(selector), 2000)
        for index, selector in enumerate(catalog.many("preview", story_id=story_id), start=1)
    ]
    preview_strategies.append(
        Strategy(
            "dom scan",
            _text_scan_click([catalog.one("preview_label", story_id=story_id), story_id], "div, li, span, p", False),
            ACTION_TIMEOUT_MS,
        )
    )

    link_strategies = _per_selector(
        catalog.many("link_button"),
        _click_when_visible,
        ("exact text", "enabled button text"),
        first_timeout_ms=10000,
    )
    link_strategies.append(Strategy("dom scan", _text_scan_click(["Link"], "button", True), ACTION_TIMEOUT_MS))

    return [
        Step(EXPAND_INTEGRATIONS_STEP, section_strategies, required=False,
             settle_after_ms=2000, screenshot_before=True),
        Step(OPEN_ADO_INTEGRATION_STEP, entry_strategies, settle_after_ms=1000),
        Step(CLICK_PUSH_STEP, push_strategies, settle_after_ms=1500),
        Step(LINK_TAB_STEP, tab_strategies, settle_after_ms=1000),
        Step(PROJECT_SELECTION_STEP, project_strategies, prepare=_open_project_dropdown,
             settle_after_ms=1000),
        Step(WORK_ITEM_STEP, work_item_strategies, settle_before_ms=2000, settle_after_ms=2000,
             screenshot_before=True),
        Step(PREVIEW_STEP, preview_strategies, settle_before_ms=2000, settle_after_ms=1000,
             screenshot_before=True),
        Step(LINK_BUTTON_STEP, link_strategies, followup=_second_confirmation, settle_after_ms=1000,
             screenshot_before=True),
        Step(CONFLICT_STEP, [Strategy("keep source data", _resolve_conflict, ACTION_TIMEOUT_MS)]),
        Step(COMPLETION_STEP, [Strategy("dialog hidden", _await_dialog_hidden, 10000)], required=False),
    ]


__all__ = [
    "CLICK_PUSH_STEP",
    "COMPLETION_STEP",
    "CONFLICT_STEP",
    "EXPAND_INTEGRATIONS_STEP",
    "LINK_BUTTON_STEP",
    "LINK_TAB_STEP",
    "OPEN_ADO_INTEGRATION_STEP",
    "PREVIEW_STEP",
    "PROJECT_INJECTION_SCRIPT",
    "PROJECT_SELECTION_STEP",
    "SCROLL_TO_BOTTOM_SCRIPT",
    "TEXT_SCAN_CLICK_SCRIPT",
    "WORK_ITEM_INJECTION_SCRIPT",
    "WORK_ITEM_STEP",
    "build_link_steps",
]
