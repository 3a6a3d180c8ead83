"""Desktop status strip: view-model, asyncio polling thread, and Qt widgets."""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys
import threading

from PySide6.QtCore import QObject, Property, Qt, Signal, Slot
from PySide6.QtWidgets import QApplication, QHBoxLayout, QLabel, QWidget

from usagebar_core import AppConfig, ResourceKind, UsageModel, build_usage_models, load_config
from usagebar_core.logging_setup import configure_logging, get_logger, install_crash_hooks

from .sources import build_fetcher
from .text import cpu_text, memory_text, tooltip


_WARNING_STYLE = "color: #d32f2f; font-weight: bold;"


class PollingThread:
    """Runs the models' asyncio loop off the GUI thread."""

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="usagebar-poll", daemon=True)
        self._models: list[UsageModel] = []

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def start(self, models: list[UsageModel]) -> None:
        self._models = list(models)
        self._thread.start()
        for model in self._models:
            self.loop.call_soon_threadsafe(model.start)

    async def _shutdown(self) -> None:
        for model in self._models:
            model.dispose()
        pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        await asyncio.gather(*pending, return_exceptions=True)

    def stop(self, timeout_s: float = 5.0) -> None:
        if not self._thread.is_alive():
            return
        future = asyncio.run_coroutine_threadsafe(self._shutdown(), self.loop)
        try:
            future.result(timeout=timeout_s)
        except concurrent.futures.TimeoutError:
            get_logger().warning("poll shutdown timed out", extra={"event": "shutdown_timeout"})
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=timeout_s)
        if not self._thread.is_alive():
            self.loop.close()


class UsageBarViewModel(QObject):
    cpuTextChanged = Signal()
    cpuVisibleChanged = Signal()
    cpuWarningChanged = Signal()
    memoryTextChanged = Signal()
    memoryVisibleChanged = Signal()
    memoryWarningChanged = Signal()

    # Emitted from the polling thread; Qt queues it onto the GUI thread.
    modelChanged = Signal(str)

    def __init__(self, config: AppConfig, models: dict[ResourceKind, UsageModel]) -> None:
        super().__init__()
        self.config = config
        self.models = models

        self._cpu_text = "CPU: --"
        self._cpu_visible = not config.display.hide_unavailable
        self._cpu_warning = False
        self._memory_text = "Mem: --"
        self._memory_visible = not config.display.hide_unavailable
        self._memory_warning = False

        self.modelChanged.connect(self._on_model_changed)
        for kind, model in models.items():
            model.state_changed.connect(lambda _m, kind=kind: self.modelChanged.emit(kind.value))

    @Property(str, notify=cpuTextChanged)
    def cpuText(self) -> str:
        return self._cpu_text

    @Property(bool, notify=cpuVisibleChanged)
    def cpuVisible(self) -> bool:
        return self._cpu_visible

    @Property(bool, notify=cpuWarningChanged)
    def cpuWarning(self) -> bool:
        return self._cpu_warning

    @Property(str, notify=memoryTextChanged)
    def memoryText(self) -> str:
        return self._memory_text

    @Property(bool, notify=memoryVisibleChanged)
    def memoryVisible(self) -> bool:
        return self._memory_visible

    @Property(bool, notify=memoryWarningChanged)
    def memoryWarning(self) -> bool:
        return self._memory_warning

    def _set(self, field: str, value: object, signal: Signal) -> None:
        if getattr(self, field) != value:
            setattr(self, field, value)
            signal.emit()

    @Slot(str)
    def _on_model_changed(self, kind: str) -> None:
        display = self.config.display
        visible_when_down = not display.hide_unavailable
        if kind == ResourceKind.CPU.value:
            snap = self.models[ResourceKind.CPU].snapshot
            text = cpu_text(snap, display.cpu_decimals) if snap.available else "CPU: --"
            self._set("_cpu_text", text, self.cpuTextChanged)
            self._set("_cpu_visible", snap.available or visible_when_down, self.cpuVisibleChanged)
            self._set("_cpu_warning", snap.warning, self.cpuWarningChanged)
        else:
            snap = self.models[ResourceKind.MEMORY].snapshot
            text = memory_text(snap, display.memory_decimals) if snap.available else "Mem: --"
            self._set("_memory_text", text, self.memoryTextChanged)
            self._set("_memory_visible", snap.available or visible_when_down, self.memoryVisibleChanged)
            self._set("_memory_warning", snap.warning, self.memoryWarningChanged)


class StatusStrip(QWidget):
    def __init__(self, vm: UsageBarViewModel) -> None:
        super().__init__()
        self.vm = vm
        self.setWindowTitle("UsageBar")
        self.setWindowFlag(Qt.WindowStaysOnTopHint, True)

        self.cpu_label = QLabel(vm.cpuText)
        self.memory_label = QLabel(vm.memoryText)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 4, 8, 4)
        layout.setSpacing(16)
        layout.addWidget(self.cpu_label)
        layout.addWidget(self.memory_label)

        for sig in (vm.cpuTextChanged, vm.cpuVisibleChanged, vm.cpuWarningChanged):
            sig.connect(self._render_cpu)
        for sig in (vm.memoryTextChanged, vm.memoryVisibleChanged, vm.memoryWarningChanged):
            sig.connect(self._render_memory)
        self._render_cpu()
        self._render_memory()

    def _render_item(self, label: QLabel, kind: str, text: str, visible: bool, warning: bool) -> None:
        label.setText(text)
        label.setVisible(visible)
        label.setStyleSheet(_WARNING_STYLE if warning else "")
        label.setToolTip(tooltip(kind, self.vm.models[ResourceKind(kind.lower())].snapshot))

    def _render_cpu(self) -> None:
        self._render_item(self.cpu_label, "CPU", self.vm.cpuText, self.vm.cpuVisible, self.vm.cpuWarning)

    def _render_memory(self) -> None:
        self._render_item(
            self.memory_label, "Memory", self.vm.memoryText, self.vm.memoryVisible, self.vm.memoryWarning
        )


def run_gui() -> int:
    cfg = load_config()
    logger = configure_logging(keep_files=cfg.diagnostics.keep_log_files)
    install_crash_hooks()

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("UsageBar")

    models = build_usage_models(build_fetcher(cfg), cfg)
    vm = UsageBarViewModel(cfg, models)
    window = StatusStrip(vm)

    poller = PollingThread()
    app.aboutToQuit.connect(poller.stop)
    poller.start(list(models.values()))
    logger.info(f"status strip started source={cfg.endpoint.source}", extra={"event": "gui_started"})

    window.show()
    return int(app.exec())
