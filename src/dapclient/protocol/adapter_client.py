"""Typed convenience methods for the standard DAP commands and events."""

from __future__ import annotations

from typing import Any

from dapclient.protocol.events import EventCallback, Subscription
from dapclient.protocol.client import DebugClient
from dapclient.protocol.reverse import ReverseRequestHandler

REQUEST_COMMANDS = (
    "attach",
    "breakpointLocations",
    "completions",
    "configurationDone",
    "continue",
    "dataBreakpointInfo",
    "disassemble",
    "disconnect",
    "evaluate",
    "exceptionInfo",
    "goto",
    "gotoTargets",
    "initialize",
    "launch",
    "loadedSources",
    "modules",
    "next",
    "pause",
    "readMemory",
    "restart",
    "restartFrame",
    "reverseContinue",
    "scopes",
    "setBreakpoints",
    "setDataBreakpoints",
    "setExceptionBreakpoints",
    "setExpression",
    "setFunctionBreakpoints",
    "setVariable",
    "source",
    "stackTrace",
    "stepBack",
    "stepIn",
    "stepInTargets",
    "stepOut",
    "terminate",
    "terminateThreads",
    "threads",
    "variables",
)

EVENT_NAMES = (
    "breakpoint",
    "capabilities",
    "continued",
    "exited",
    "initialized",
    "loadedSource",
    "module",
    "output",
    "process",
    "stopped",
    "terminated",
    "thread",
)

REVERSE_REQUEST_COMMANDS = ("runInTerminal",)

Arguments = dict[str, Any] | None


class DebugAdapterClient(DebugClient):
    """
    DebugClient with one method per standard request, event and reverse
    request.

    Request methods return the response body. ``continue`` and
    ``disconnect`` are exposed as ``continue_()`` and
    ``disconnect_request()`` so they do not clash with the keyword and
    with DebugClient.disconnect(), which closes the connection.
    """

    # === Requests ===

    async def attach(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("attach", arguments, timeout)

    async def breakpoint_locations(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("breakpointLocations", arguments, timeout)

    async def completions(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("completions", arguments, timeout)

    async def configuration_done(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("configurationDone", arguments, timeout)

    async def continue_(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("continue", arguments, timeout)

    async def data_breakpoint_info(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("dataBreakpointInfo", arguments, timeout)

    async def disassemble(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("disassemble", arguments, timeout)

    async def disconnect_request(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        """Ask the adapter to end the debug session (does not close the connection)."""
        return await self.send_request("disconnect", arguments, timeout)

    async def evaluate(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("evaluate", arguments, timeout)

    async def exception_info(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("exceptionInfo", arguments, timeout)

    async def goto(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("goto", arguments, timeout)

    async def goto_targets(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("gotoTargets", arguments, timeout)

    async def initialize(self, arguments: Arguments, timeout: float | None = None) -> Any:
        """Raw ``initialize``; see capabilities.initialize_adapter() for the typed form."""
        return await self.send_request("initialize", arguments, timeout)

    async def launch(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("launch", arguments, timeout)

    async def loaded_sources(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("loadedSources", arguments, timeout)

    async def modules(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("modules", arguments, timeout)

    async def next(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("next", arguments, timeout)

    async def pause(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("pause", arguments, timeout)

    async def read_memory(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("readMemory", arguments, timeout)

    async def restart(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("restart", arguments, timeout)

    async def restart_frame(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("restartFrame", arguments, timeout)

    async def reverse_continue(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("reverseContinue", arguments, timeout)

    async def scopes(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("scopes", arguments, timeout)

    async def set_breakpoints(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("setBreakpoints", arguments, timeout)

    async def set_data_breakpoints(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("setDataBreakpoints", arguments, timeout)

    async def set_exception_breakpoints(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("setExceptionBreakpoints", arguments, timeout)

    async def set_expression(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("setExpression", arguments, timeout)

    async def set_function_breakpoints(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("setFunctionBreakpoints", arguments, timeout)

    async def set_variable(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("setVariable", arguments, timeout)

    async def source(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("source", arguments, timeout)

    async def stack_trace(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("stackTrace", arguments, timeout)

    async def step_back(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("stepBack", arguments, timeout)

    async def step_in(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("stepIn", arguments, timeout)

    async def step_in_targets(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("stepInTargets", arguments, timeout)

    async def step_out(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("stepOut", arguments, timeout)

    async def terminate(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("terminate", arguments, timeout)

    async def terminate_threads(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("terminateThreads", arguments, timeout)

    async def threads(self, arguments: Arguments = None, timeout: float | None = None) -> Any:
        return await self.send_request("threads", arguments, timeout)

    async def variables(self, arguments: Arguments, timeout: float | None = None) -> Any:
        return await self.send_request("variables", arguments, timeout)

    # === Events ===

    def on_breakpoint(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("breakpoint", callback, once)

    def on_capabilities(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("capabilities", callback, once)

    def on_continued(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("continued", callback, once)

    def on_exited(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("exited", callback, once)

    def on_initialized(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("initialized", callback, once)

    def on_loaded_source(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("loadedSource", callback, once)

    def on_module(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("module", callback, once)

    def on_output(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("output", callback, once)

    def on_process(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("process", callback, once)

    def on_stopped(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("stopped", callback, once)

    def on_terminated(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("terminated", callback, once)

    def on_thread(self, callback: EventCallback, once: bool = False) -> Subscription:
        return self.on_event("thread", callback, once)

    # === Reverse requests ===

    def on_run_in_terminal_request(self, handler: ReverseRequestHandler) -> Subscription:
        """Handle ``runInTerminal``; the handler returns ``{"processId": ...}`` or similar."""
        return self.on_reverse_request("runInTerminal", handler)
