"""Per-run state shared by the pipeline stages."""

from typing import Any, Dict, List, NamedTuple, Optional

from host_hardener.exceptions import HardenerError
from host_hardener.types import Stage


class PendingIdentity(NamedTuple):
    """Validated account details collected from the operator."""

    username: str
    password: str
    public_key: str

    def __repr__(self) -> str:
        return f"PendingIdentity(username={self.username!r}, password='***', public_key=...)"


class RunContext:
    """Values fixed once during a run and read by every later stage.

    Each field can be set exactly once; reading a field before it is set is
    an error, as is setting it a second time.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def _set_once(self, name: str, value: Any) -> None:
        if name in self._values:
            raise HardenerError(f"Run context field '{name}' is already set")
        self._values[name] = value

    def _get(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise HardenerError(f"Run context field '{name}' is not set yet") from None

    def is_set(self, name: str) -> bool:
        return name in self._values

    def set_identity(self, identity: PendingIdentity) -> None:
        self._set_once("identity", identity)

    def freeze_port(self, port: int) -> None:
        self._set_once("ssh_port", port)

    def set_allow_https(self, allow: bool) -> None:
        self._set_once("allow_https", allow)

    @property
    def identity(self) -> PendingIdentity:
        return self._get("identity")

    @property
    def username(self) -> str:
        return self.identity.username

    @property
    def ssh_port(self) -> int:
        return self._get("ssh_port")

    @property
    def allow_https(self) -> bool:
        return self._get("allow_https")


class HardeningRunState:
    """Ordered record of completed stages, used for logging only."""

    def __init__(self) -> None:
        self.current: Stage = Stage.START
        self.completed: List[Stage] = []
        self.failure: Optional[str] = None

    def enter(self, stage: Stage) -> None:
        self.current = stage

    def complete(self, stage: Stage) -> None:
        self.completed.append(stage)

    def abort(self, reason: str) -> None:
        self.failure = reason
        self.current = Stage.ABORTED

    def finish(self) -> None:
        self.current = Stage.DONE

    @property
    def aborted(self) -> bool:
        return self.current == Stage.ABORTED
