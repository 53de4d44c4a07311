from PySide6.QtCore import QObject, QThread, QEventLoop, QCoreApplication, Signal, Slot
import logging
from typing import Dict, Tuple, Callable, Any, Optional

from ..managers.node_manager import (
    install_node_version, uninstall_node_version, use_node_version, set_default_node_version,
)

logger = logging.getLogger(__name__)

# Handler signature: data in, (success, message, context data to emit) out
TaskHandler = Callable[[Dict[str, Any]], Tuple[bool, str, Dict[str, Any]]]


class Worker(QObject):
    """
    Worker object that performs fnm tasks in a separate thread.
    Emits resultReady signal when a task is complete.
    """
    resultReady = Signal(str, dict, bool, str) # task_name, context_data, success, message

    def __init__(self) -> None:
        super().__init__()
        self.task_handlers: Dict[str, TaskHandler] = {
            "install_node": self._task_install_node,
            "uninstall_node": self._task_uninstall_node,
            "use_node": self._task_use_node,
            "set_default_node": self._task_set_default_node,
        }

    # --- Private Helper Methods for Tasks ---

    def _run_version_task(
        self, task_name: str, data: Dict[str, Any], action: Callable[[str], Tuple[bool, str]]
    ) -> Tuple[bool, str, Dict[str, Any]]:
        logger.info(f"WORKER: Handling task '{task_name}' with data: {data}")
        context_data_to_emit: Dict[str, Any] = data.copy()
        version: Optional[str] = data.get("version")
        if not version:
            logger.warning(f"WORKER: Task '{task_name}' failed - Missing 'version' in data.")
            return False, f"Missing version for {task_name}.", context_data_to_emit

        success, message = action(version)
        logger.info(f"WORKER: Task '{task_name}' for version {version} finished. Success: {success}")
        return success, message, context_data_to_emit

    def _task_install_node(self, data: Dict[str, Any]) -> Tuple[bool, str, Dict[str, Any]]:
        return self._run_version_task("install_node", data, install_node_version)

    def _task_uninstall_node(self, data: Dict[str, Any]) -> Tuple[bool, str, Dict[str, Any]]:
        return self._run_version_task("uninstall_node", data, uninstall_node_version)

    def _task_use_node(self, data: Dict[str, Any]) -> Tuple[bool, str, Dict[str, Any]]:
        return self._run_version_task("use_node", data, use_node_version)

    def _task_set_default_node(self, data: Dict[str, Any]) -> Tuple[bool, str, Dict[str, Any]]:
        return self._run_version_task("set_default_node", data, set_default_node_version)

    @Slot(str, dict)
    def doWork(self, task_name: str, data: dict):
        local_success: bool = False
        local_message: str = f"Task '{task_name}' handler not found or not implemented."
        context_data_to_emit: dict = data.copy()

        logger.info(f"WORKER: Received task '{task_name}' with data: {data}")

        try:
            handler = self.task_handlers.get(task_name)
            if handler:
                logger.debug(f"WORKER: Found handler for task '{task_name}'. Calling it...")
                local_success, local_message, context_data_to_emit = handler(data)
            else:
                logger.warning(f"WORKER: No handler registered for task '{task_name}'.")

            logger.info(f"WORKER: Task '{task_name}' processing finished. Success: {local_success}")

        except Exception as e:
            logger.error(f"WORKER: EXCEPTION during task '{task_name}' execution: {e}", exc_info=True)
            local_success = False
            local_message = f"Unexpected error in worker for task '{task_name}': {type(e).__name__} - {e}"
        finally:
            logger.info(f"WORKER: Emitting resultReady for '{task_name}' (Success={local_success}) Context: {context_data_to_emit}")
            self.resultReady.emit(task_name, context_data_to_emit, local_success, local_message)


class WorkerHost(QObject):
    """
    Owns a Worker living on its own QThread. Tasks are queued with
    triggerWorker.emit(task_name, data); results arrive on worker.resultReady.
    """
    triggerWorker = Signal(str, dict)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.thread = QThread()
        self.worker = Worker()
        self.worker.moveToThread(self.thread)
        self.triggerWorker.connect(self.worker.doWork)
        self.thread.finished.connect(self.worker.deleteLater) # Clean up worker
        self.thread.start()
        logger.debug("WORKER: Worker thread started.")

    def shutdown(self) -> None:
        if self.thread.isRunning():
            self.thread.quit()
            self.thread.wait()
            logger.debug("WORKER: Worker thread stopped.")


class _ResultCollector(QObject):
    """Lives on the calling thread so results arrive queued, inside the event loop."""

    def __init__(self, loop: QEventLoop) -> None:
        super().__init__()
        self.loop = loop
        self.success: bool = False
        self.message: str = ""

    @Slot(str, dict, bool, str)
    def collect(self, task_name: str, context: dict, success: bool, message: str) -> None:
        self.success = success
        self.message = message
        self.loop.quit()


def run_task_blocking(task_name: str, data: Dict[str, Any]) -> Tuple[bool, str]:
    """
    Runs one worker task on a worker thread and waits for its result,
    keeping a Qt event loop spinning meanwhile. Creates a QCoreApplication
    if none exists.

    Returns:
        tuple: (success (bool), message (str))
    """
    # Held for the duration of the call; a QEventLoop needs an application object
    app = QCoreApplication.instance() or QCoreApplication([])  # noqa: F841
    host = WorkerHost()
    loop = QEventLoop()
    collector = _ResultCollector(loop)
    host.worker.resultReady.connect(collector.collect)
    host.triggerWorker.emit(task_name, data)
    loop.exec()
    host.shutdown()
    logger.debug(f"WORKER: Blocking run of '{task_name}' done. Success: {collector.success}")
    return collector.success, collector.message
