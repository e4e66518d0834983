"""
Sandbox Provider - one shared sandbox per process

Booting a sandbox is slow and only one may exist at a time, so every
consumer goes through a get-or-create provider:

- the first acquire() starts the boot, concurrent callers await the same boot
- a failed boot clears the in-flight state so the next acquire() retries
- acquire() / release() keep a reference count; the instance is disposed
  when it drops to zero only if dispose_when_idle is set
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from solforge.core.exceptions import SandboxBootError, SolforgeError
from solforge.core.logging_config import logger

SandboxFactory = Callable[[], Awaitable[Any]]


class SandboxProvider:
    """Lazily created, reference-counted shared sandbox"""

    def __init__(self, factory: SandboxFactory, dispose_when_idle: bool = False):
        self._factory = factory
        self.dispose_when_idle = dispose_when_idle
        self._instance: Optional[Any] = None
        self._booting: Optional[asyncio.Future] = None
        self._refcount = 0
        self.boot_count = 0

    @property
    def is_ready(self) -> bool:
        return self._instance is not None

    @property
    def is_booting(self) -> bool:
        return self._booting is not None and not self._booting.done()

    @property
    def refcount(self) -> int:
        return self._refcount

    def get_instance_sync(self) -> Optional[Any]:
        """Current instance without booting, None if not ready"""
        return self._instance

    async def _boot(self) -> Any:
        self.boot_count += 1
        logger.info(f"[SandboxProvider] Booting sandbox (attempt {self.boot_count})")
        try:
            instance = await self._factory()
        except SolforgeError:
            logger.log_sandbox_event("boot", success=False)
            raise
        except Exception as e:
            logger.log_sandbox_event("boot", success=False, error=str(e))
            raise SandboxBootError(str(e)) from e

        logger.log_sandbox_event("boot", success=True)
        return instance

    async def acquire(self) -> Any:
        """
        Get the shared sandbox, booting it on first use.

        Raises:
            SandboxBootError: the factory failed; the next call retries
        """
        if self._instance is None:
            if self._booting is None:
                self._booting = asyncio.ensure_future(self._boot())
            booting = self._booting
            try:
                # shield: a cancelled waiter must not cancel the shared boot
                instance = await asyncio.shield(booting)
            finally:
                if self._booting is booting and booting.done():
                    self._booting = None
            if self._instance is None:
                self._instance = instance

        self._refcount += 1
        return self._instance

    async def release(self) -> None:
        """Drop one reference"""
        if self._refcount == 0:
            logger.warning("[SandboxProvider] release() without matching acquire()")
            return

        self._refcount -= 1
        if self._refcount == 0 and self.dispose_when_idle and self._instance is not None:
            instance, self._instance = self._instance, None
            await _close(instance)
            logger.log_sandbox_event("dispose", success=True)

    async def reset(self) -> None:
        """Forget the instance and any in-flight boot"""
        if self._booting is not None and not self._booting.done():
            self._booting.cancel()
        self._booting = None
        instance, self._instance = self._instance, None
        self._refcount = 0
        if instance is not None:
            await _close(instance)
        logger.debug("[SandboxProvider] Reset")


async def _close(instance: Any) -> None:
    close = getattr(instance, "close", None)
    if close is None:
        return
    result = close()
    if asyncio.iscoroutine(result):
        await result


_provider: Optional[SandboxProvider] = None


def get_sandbox_provider() -> SandboxProvider:
    """Process-wide provider backed by LocalSandbox"""
    global _provider
    if _provider is None:
        from solforge.modules.sandbox.local_executor import LocalSandbox
        _provider = SandboxProvider(LocalSandbox.create)
    return _provider
