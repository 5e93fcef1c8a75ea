"""Visible-state boundary.

`ModulePresenter` is the only component that mutates what the user sees. It
talks to a `RenderTarget`; `ViewState` is the in-process target whose snapshot
the local HTTP surface serves to the browser.
"""
from contextlib import contextmanager
from typing import Dict, Optional, Protocol, Set, Tuple

from kycflow.store.models import Decision, Module, Page, VISIBLE_MODULES

STATUS_UNAVAILABLE_BANNER = "Unable to reach the verification service. Retrying..."


class RenderTarget(Protocol):
    def show(self, module: Module) -> None: ...
    def hide(self, module: Module) -> None: ...
    def set_banner(self, text: str, verified: bool) -> None: ...
    def set_controls_enabled(self, module: Module, enabled: bool) -> None: ...
    def set_instructions(self, module: Module, text: str) -> None: ...
    def set_message(self, slot: str, text: str, is_error: bool) -> None: ...
    def clear_message(self, slot: str) -> None: ...
    def clear_field(self, module: Module, field_name: str) -> None: ...
    def show_page(self, page: Page) -> None: ...
    def set_display_name(self, name: str) -> None: ...
    def set_busy(self, busy: bool) -> None: ...
    def set_call_to_action(self, module: Module, resets_form: bool) -> None: ...
    def reset_module(self, module: Module) -> None: ...


class ViewState:
    """Plain in-memory render target."""

    def __init__(self):
        self.page: Page = Page.AUTH
        self.display_name: str = ""
        self.banner_text: str = ""
        self.banner_verified: bool = False
        self.visible: Set[Module] = set()
        self.disabled: Set[Module] = set()
        self.instructions: Dict[Module, str] = {}
        self.messages: Dict[str, Tuple[str, bool]] = {}
        self.cleared_fields: Set[Tuple[Module, str]] = set()
        self.pending_requests: int = 0
        self.call_to_action: Module = Module.NONE
        self.call_to_action_resets_form: bool = False

    def show(self, module: Module) -> None:
        self.visible.add(module)

    def hide(self, module: Module) -> None:
        self.visible.discard(module)

    def set_banner(self, text: str, verified: bool) -> None:
        self.banner_text = text
        self.banner_verified = verified

    def set_controls_enabled(self, module: Module, enabled: bool) -> None:
        if enabled:
            self.disabled.discard(module)
        else:
            self.disabled.add(module)

    def set_instructions(self, module: Module, text: str) -> None:
        self.instructions[module] = text

    def set_message(self, slot: str, text: str, is_error: bool) -> None:
        self.messages[slot] = (text, is_error)

    def clear_message(self, slot: str) -> None:
        self.messages.pop(slot, None)

    def clear_field(self, module: Module, field_name: str) -> None:
        self.cleared_fields.add((module, field_name))

    def show_page(self, page: Page) -> None:
        self.page = page

    def set_display_name(self, name: str) -> None:
        self.display_name = name

    def set_busy(self, busy: bool) -> None:
        self.pending_requests = max(0, self.pending_requests + (1 if busy else -1))

    def set_call_to_action(self, module: Module, resets_form: bool) -> None:
        self.call_to_action = module
        self.call_to_action_resets_form = resets_form

    def reset_module(self, module: Module) -> None:
        """Back to a fresh form: enabled, no instructions, message or cleared fields."""
        self.disabled.discard(module)
        self.instructions.pop(module, None)
        self.messages.pop(module.slot, None)
        self.cleared_fields = {(m, f) for m, f in self.cleared_fields if m is not module}

    @property
    def visible_module(self) -> Module:
        for module in VISIBLE_MODULES:
            if module in self.visible:
                return module
        return Module.NONE

    def message(self, slot: str) -> Optional[str]:
        entry = self.messages.get(slot)
        return entry[0] if entry else None

    def snapshot(self) -> dict:
        return {
            "page": self.page.value,
            "displayName": self.display_name,
            "banner": {"text": self.banner_text, "verified": self.banner_verified},
            "module": self.visible_module.value,
            "callToAction": {
                "module": self.call_to_action.value,
                "resetForm": self.call_to_action_resets_form,
            },
            "modules": {
                m.value: {
                    "visible": m in self.visible,
                    "enabled": m not in self.disabled,
                    "instructions": self.instructions.get(m),
                    "clearedFields": sorted(f for mod, f in self.cleared_fields if mod is m),
                }
                for m in VISIBLE_MODULES
            },
            "messages": {slot: {"text": text, "error": is_error} for slot, (text, is_error) in self.messages.items()},
            "busy": self.pending_requests > 0,
        }


class ModulePresenter:
    def __init__(self, target: RenderTarget):
        self.target = target
        self.last_decision: Optional[Decision] = None

    def apply(self, decision: Decision) -> None:
        """Hide every module but the named one, then bring the rest of the view in line."""
        for module in VISIBLE_MODULES:
            if module is not decision.module:
                self.target.hide(module)
        if decision.module is not Module.NONE:
            self.target.show(decision.module)

        self.target.set_banner(decision.banner_text, decision.banner_verified)

        if decision.id_controls_enabled is not None:
            self.target.set_controls_enabled(Module.ID_VERIFICATION, decision.id_controls_enabled)
        if decision.instructions is not None and decision.module is not Module.NONE:
            self.target.set_instructions(decision.module, decision.instructions)
        if decision.inline_message is not None and decision.module is not Module.NONE:
            self.target.set_message(decision.module.slot, decision.inline_message, True)
        for field_name in decision.clear_fields:
            self.target.clear_field(decision.module, field_name)
        self.target.set_call_to_action(decision.call_to_action, decision.call_to_action_resets_form)

        self.last_decision = decision

    def reset_modules(self) -> None:
        for module in VISIBLE_MODULES:
            self.target.hide(module)
        self.target.set_call_to_action(Module.NONE, False)
        self.last_decision = None

    def reset(self) -> None:
        """Drop everything the previous session left on screen."""
        self.reset_modules()
        for module in VISIBLE_MODULES:
            self.target.reset_module(module)
        self.target.set_banner("", False)
        self.target.set_display_name("")

    def show_page(self, page: Page) -> None:
        self.target.show_page(page)

    def set_display_name(self, name: str) -> None:
        self.target.set_display_name(name)

    def show_message(self, slot: str, text: str, is_error: bool = False) -> None:
        self.target.set_message(slot, text, is_error)

    def clear_message(self, slot: str) -> None:
        self.target.clear_message(slot)

    def show_status_unavailable(self) -> None:
        self.target.set_banner(STATUS_UNAVAILABLE_BANNER, False)

    @contextmanager
    def busy(self):
        self.target.set_busy(True)
        try:
            yield
        finally:
            self.target.set_busy(False)
