"""
Session orchestrator - terminal/file channel lifecycle

Opens the terminal channel of a session, pairs a file-transfer channel to
the same target in the background, and handles reconnect, close and
terminal I/O. All state lives in the SessionRegistry; the orchestrator
only tracks the pending pairing task of each session.
"""
import asyncio
import dataclasses
import inspect
import weakref
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from ...core.exceptions import (
    ChannelNotFoundError,
    ChannelNotReadyError,
    ClassifiedError,
    SessionNotFoundError,
)
from ...core.interfaces import ChannelTransport
from ...core.logging import get_logger
from ...core.telemetry import Telemetry
from .classifier import ErrorClassifier
from .credentials import CredentialResolver
from .models import (
    AUTH_PRIVATE_KEY,
    HostParams,
    OrchestratorConfig,
    PairingCompleted,
    PairingState,
    Session,
    SessionProfile,
    TargetDescriptor,
)
from .registry import SessionRegistry, terminal_channel_id, file_channel_id

logger = get_logger(__name__)

PairingListener = Callable[[PairingCompleted], Union[None, Awaitable[None]]]
OutputListener = Callable[[str, bytes], Any]
ClosedListener = Callable[[str], Any]


def _key_path(profile: Optional[SessionProfile]) -> Optional[str]:
    if profile is not None and profile.auth_mode == AUTH_PRIVATE_KEY:
        return profile.private_key
    return None


class SessionOrchestrator:
    """
    Coordinates the terminal and file channels of every session.

    Usage::

        async with SessionOrchestrator(transport, registry, resolver, classifier) as orch:
            session = await orch.open_from_profile(profile)
            channel_id = await orch.wait_for_pairing(session.session_id)
    """

    def __init__(
        self,
        transport: ChannelTransport,
        registry: SessionRegistry,
        credentials: CredentialResolver,
        classifier: ErrorClassifier,
        config: Optional[OrchestratorConfig] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        self.transport = transport
        self.registry = registry
        self.credentials = credentials
        self.classifier = classifier
        self.config = config or OrchestratorConfig()
        self.config.validate()
        self.telemetry = telemetry or Telemetry()

        self._pairing_tasks: Dict[str, asyncio.Task] = {}
        # reconnect and close of one session id never interleave
        self._op_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._background: Set[asyncio.Task] = set()
        self._pairing_listeners: List[PairingListener] = []
        self._output_listeners: List[OutputListener] = []
        self._closed_listeners: List[ClosedListener] = []

        transport.subscribe_terminal(self._on_terminal_output, self._on_terminal_exit)

    async def __aenter__(self) -> "SessionOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.shutdown()

    # --------------------
    # Listeners
    # --------------------
    def on_pairing_completed(self, callback: PairingListener) -> Callable[[], None]:
        """Register a pairing-completed listener; returns an unsubscribe function"""
        self._pairing_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._pairing_listeners:
                self._pairing_listeners.remove(callback)

        return unsubscribe

    def on_terminal_output(self, callback: OutputListener) -> Callable[[], None]:
        """Register a listener for terminal output as ``(session_id, data)``"""
        self._output_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._output_listeners:
                self._output_listeners.remove(callback)

        return unsubscribe

    def on_session_closed(self, callback: ClosedListener) -> Callable[[], None]:
        """Register a listener called with the session id after a session is destroyed"""
        self._closed_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._closed_listeners:
                self._closed_listeners.remove(callback)

        return unsubscribe

    # --------------------
    # Open
    # --------------------
    async def open_from_profile(self, profile: SessionProfile) -> Session:
        """
        Open a session for a saved profile.

        Returns once the terminal channel is open; the file channel is
        paired in the background.

        Raises:
            ClassifiedError: If the terminal channel cannot be opened. No
                session is registered in that case.
        """
        profile.validate()
        secret = await self.credentials.resolve(profile)
        return await self._open(
            target=profile.target,
            title=profile.title,
            profile=profile,
            secret=secret,
            key_path=_key_path(profile),
        )

    async def open_new(self, params: HostParams) -> Session:
        """Open an ad-hoc session that has no saved profile"""
        params.validate()
        return await self._open(
            target=params.target,
            title=params.display_name or f"{params.username}@{params.host}",
            profile=None,
            secret=params.password,
            key_path=params.private_key,
        )

    async def _open(
        self,
        target: TargetDescriptor,
        title: str,
        profile: Optional[SessionProfile],
        secret: Optional[str],
        key_path: Optional[str],
    ) -> Session:
        session_id = self.registry.allocate_id()
        generation = 0
        channel_id = terminal_channel_id(session_id, generation)

        await self._open_terminal(channel_id, target, secret, key_path)

        session = Session(
            session_id=session_id,
            target=target,
            title=title,
            terminal_channel_id=channel_id,
            profile=profile,
            generation=generation,
        )
        try:
            await self.registry.create(session)
        except ValueError:
            await self._close_terminal_channel(channel_id)
            raise

        logger.info(f"Session {session_id} opened ({target})")
        self.telemetry.record_event("session.opened", {
            "session_id": session_id,
            "target": str(target),
        })

        self._schedule_pairing(session, secret, key_path)
        return dataclasses.replace(session)

    async def _open_terminal(
        self,
        channel_id: str,
        target: TargetDescriptor,
        secret: Optional[str],
        key_path: Optional[str],
    ) -> None:
        try:
            await self.transport.open_terminal_channel(
                channel_id,
                target,
                secret,
                self.config.default_cols,
                self.config.default_rows,
                key_path=key_path,
            )
        except Exception as e:
            error = self.classifier.to_exception(e, target)
            logger.error(f"Terminal channel {channel_id} failed: {error.category.value}: {e}")
            self.telemetry.record_event("session.open_failed", {
                "target": str(target),
                "category": error.category.value,
            })
            raise error from e

    # --------------------
    # Pairing
    # --------------------
    def _schedule_pairing(
        self,
        session: Session,
        secret: Optional[str],
        key_path: Optional[str],
    ) -> None:
        session_id = session.session_id
        previous = self._pairing_tasks.pop(session_id, None)
        if previous is not None:
            previous.cancel()

        task = asyncio.create_task(
            self._pair_after_delay(session_id, session.generation, session.target, secret, key_path),
            name=f"pair-{session_id}-{session.generation}",
        )
        self._pairing_tasks[session_id] = task
        task.add_done_callback(lambda t: self._forget_pairing_task(session_id, t))

    def _forget_pairing_task(self, session_id: str, task: asyncio.Task) -> None:
        if self._pairing_tasks.get(session_id) is task:
            del self._pairing_tasks[session_id]

    async def _cancel_pairing(self, session_id: str) -> None:
        task = self._pairing_tasks.pop(session_id, None)
        # A pairing listener closing its own session runs inside the task
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait({task})

    async def _pair_after_delay(
        self,
        session_id: str,
        generation: int,
        target: TargetDescriptor,
        secret: Optional[str],
        key_path: Optional[str],
    ) -> None:
        await asyncio.sleep(self.config.settle_delay)
        await self._pair(session_id, generation, target, secret, key_path)

    async def _pair(
        self,
        session_id: str,
        generation: int,
        target: TargetDescriptor,
        secret: Optional[str],
        key_path: Optional[str],
    ) -> None:
        session = await self.registry.begin_pairing(session_id, generation)
        if session is None:
            logger.debug(f"Skipping pairing for {session_id}: session closed or reconnected")
            return

        channel_id = file_channel_id(session_id, generation)
        try:
            await self.transport.open_file_channel(channel_id, target, secret, key_path=key_path)
        except asyncio.CancelledError:
            await self._close_file_channel(channel_id)
            raise
        except Exception as e:
            formatted = self.classifier.classify(e, target)
            logger.warning(f"File channel pairing failed for {session_id}: {formatted.title}: {e}")
            await self.registry.update_file_channel(
                session_id, None, PairingState.PAIRING_FAILED, generation=generation,
            )
            self.telemetry.record_event("session.pairing_failed", {
                "session_id": session_id,
                "category": formatted.category.value,
            })
            return

        paired = await self.registry.update_file_channel(
            session_id, channel_id, PairingState.PAIRED, generation=generation,
        )
        if not paired:
            logger.debug(f"Session {session_id} went away while pairing, releasing {channel_id}")
            await self._close_file_channel(channel_id)
            return

        logger.info(f"Session {session_id} paired with file channel {channel_id}")
        self.telemetry.record_event("session.paired", {
            "session_id": session_id,
            "file_channel_id": channel_id,
        })
        await self._emit_pairing_completed(PairingCompleted(session_id, channel_id))

    async def _emit_pairing_completed(self, event: PairingCompleted) -> None:
        for callback in list(self._pairing_listeners):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Pairing listener failed for {event.session_id}")

    async def wait_for_pairing(self, session_id: str, timeout: Optional[float] = None) -> str:
        """
        Wait for the pending pairing attempt and return the file channel id.

        Raises:
            SessionNotFoundError: If the session is unknown or was closed
            ChannelNotReadyError: If pairing failed or did not finish in time
        """
        if self.registry.get(session_id) is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

        if timeout is None:
            timeout = self.config.pairing_wait_timeout
        task = self._pairing_tasks.get(session_id)
        if task is not None and not task.done():
            await asyncio.wait({task}, timeout=timeout)

        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session closed while pairing: {session_id}")
        if session.pairing_state is PairingState.PAIRED:
            return session.file_channel_id
        reason = "pairing timed out" if session.pairing_state in (
            PairingState.UNPAIRED, PairingState.PAIRING,
        ) else "pairing failed"
        raise ChannelNotReadyError(session.file_channel_id, reason)

    # --------------------
    # Reconnect / close
    # --------------------
    async def reconnect(
        self,
        session_id: str,
        profile: Optional[SessionProfile] = None,
        password: Optional[str] = None,
    ) -> None:
        """
        Re-establish a session's terminal channel and pair it again.

        Closing the old channels is best-effort. When no profile is given
        the session's own snapshot is used; ``password`` overrides the
        stored secret (ad-hoc sessions have none).

        Raises:
            SessionNotFoundError: If the id is unknown and no profile is
                given, or the session was removed while reopening
            ClassifiedError: If the new terminal channel cannot be opened;
                the session is removed in that case
        """
        async with self._op_lock(session_id):
            await self._reconnect(session_id, profile, password)

    def _op_lock(self, session_id: str) -> asyncio.Lock:
        lock = self._op_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._op_locks[session_id] = lock
        return lock

    async def _reconnect(
        self,
        session_id: str,
        profile: Optional[SessionProfile],
        password: Optional[str],
    ) -> None:
        await self._cancel_pairing(session_id)
        session = self.registry.get(session_id)

        if profile is None and session is not None:
            profile = session.profile
        if profile is not None:
            target = profile.target
        elif session is not None:
            target = session.target
        else:
            raise SessionNotFoundError(f"Nothing to reconnect for {session_id}")

        if session is not None:
            await self._close_terminal_channel(session.terminal_channel_id)
            if session.file_channel_id:
                await self._close_file_channel(session.file_channel_id)

        if password is not None:
            secret = password
        elif profile is not None:
            secret = await self.credentials.resolve(profile)
        else:
            secret = None
        key_path = _key_path(profile)

        generation = session.generation + 1 if session is not None else 0
        channel_id = terminal_channel_id(session_id, generation)
        try:
            await self._open_terminal(channel_id, target, secret, key_path)
        except ClassifiedError:
            await self._forget(session_id)
            raise

        updated = await self.registry.replace_terminal_channel(
            session_id, generation, target=target, profile=profile,
        )
        if updated is None and session is not None:
            logger.info(f"Session {session_id} removed while reconnecting, releasing {channel_id}")
            await self._close_terminal_channel(channel_id)
            raise SessionNotFoundError(f"Session closed while reconnecting: {session_id}")
        if updated is None:
            updated = Session(
                session_id=session_id,
                target=target,
                title=profile.title if profile else str(target),
                terminal_channel_id=channel_id,
                profile=profile,
                generation=generation,
            )
            await self.registry.create(updated)

        logger.info(f"Session {session_id} reconnected ({target})")
        self.telemetry.record_event("session.reconnected", {
            "session_id": session_id,
            "generation": generation,
        })
        self._schedule_pairing(updated, secret, key_path)

    async def close(self, session_id: str) -> None:
        """Close both channels and forget the session; unknown ids are a no-op"""
        async with self._op_lock(session_id):
            await self._cancel_pairing(session_id)
            session = self.registry.get(session_id)
            if session is None:
                return

            await self._close_terminal_channel(session.terminal_channel_id)
            if session.file_channel_id:
                await self._close_file_channel(session.file_channel_id)
            await self._forget(session_id)

    async def _forget(self, session_id: str) -> None:
        """Drop a session from the registry and notify closed-listeners once"""
        if await self.registry.remove(session_id) is None:
            return

        logger.info(f"Session {session_id} closed")
        self.telemetry.record_event("session.closed", {"session_id": session_id})
        for callback in list(self._closed_listeners):
            try:
                callback(session_id)
            except Exception:
                logger.exception(f"Session-closed listener failed for {session_id}")

    async def shutdown(self) -> None:
        """Close every live session"""
        for session in self.registry.list():
            await self.close(session.session_id)
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _close_terminal_channel(self, channel_id: str) -> None:
        try:
            await self.transport.close_terminal_channel(channel_id)
        except ChannelNotFoundError:
            logger.debug(f"Terminal channel {channel_id} already closed")
        except Exception as e:
            logger.warning(f"Failed to close terminal channel {channel_id}: {e}")

    async def _close_file_channel(self, channel_id: str) -> None:
        try:
            await self.transport.close_file_channel(channel_id)
        except ChannelNotFoundError:
            logger.debug(f"File channel {channel_id} already closed")
        except Exception as e:
            logger.warning(f"Failed to close file channel {channel_id}: {e}")

    # --------------------
    # Terminal I/O
    # --------------------
    async def write_input(self, session_id: str, data: Union[bytes, str]) -> None:
        """Send keystrokes to the terminal; failures are logged only"""
        session = self.registry.get(session_id)
        if session is None:
            logger.warning(f"write_input on unknown session {session_id}")
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            await self.transport.write_terminal_channel(session.terminal_channel_id, data)
        except Exception as e:
            logger.warning(f"Terminal write failed for {session_id}: {e}")

    async def resize(self, session_id: str, cols: int, rows: int) -> None:
        """Resize the remote pty; failures are logged only"""
        session = self.registry.get(session_id)
        if session is None:
            logger.warning(f"resize on unknown session {session_id}")
            return
        try:
            await self.transport.resize_terminal_channel(session.terminal_channel_id, cols, rows)
        except Exception as e:
            logger.warning(f"Terminal resize failed for {session_id}: {e}")

    def _on_terminal_output(self, channel_id: str, data: bytes) -> None:
        session = self.registry.find_by_terminal_channel(channel_id)
        if session is None:
            return
        for callback in list(self._output_listeners):
            try:
                callback(session.session_id, data)
            except Exception:
                logger.exception(f"Terminal output listener failed for {session.session_id}")

    def _on_terminal_exit(self, channel_id: str, reason: Optional[str]) -> None:
        session = self.registry.find_by_terminal_channel(channel_id)
        if session is None:
            return
        logger.info(f"Terminal channel {channel_id} ended: {reason or 'closed by remote'}")
        task = asyncio.ensure_future(self._destroy(session.session_id, channel_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _destroy(self, session_id: str, channel_id: str) -> None:
        """Tear down a session whose terminal channel died"""
        session = self.registry.get(session_id)
        if session is None or session.terminal_channel_id != channel_id:
            return
        await self.close(session_id)
