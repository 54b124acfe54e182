import re
from typing import IO, List, Optional

import click
from pydantic import BaseModel, ConfigDict

# Each of LF, VT, FF, CR, NEL, LS and PS is its own separator, so "\r\n" leaves an empty line.
LINE_BREAK = re.compile(r"[\n\x0b\x0c\r\x85\u2028\u2029]")

ERROR_MARKER = "💥"
CONTINUATION_MARKER = "▒"
SUB_CONTINUATION_MARKER = f"{CONTINUATION_MARKER} {CONTINUATION_MARKER}"


class HeraldPolicy(BaseModel):
    """
    How a Herald treats conclusions and session starts.

    conclusion_is_sticky: after the first conclusion, every later call renders as a plain
        continuation and ignores its error/conclusion flags until the next session start or reset.
    has_session_start_parameter: sessions are opened explicitly with is_session_start=True.
        Without it, the first call after construction or reset() opens the session.
    """

    model_config = ConfigDict(frozen=True)

    session_marker: str
    conclusion_is_sticky: bool = False
    has_session_start_parameter: bool = False


RING = HeraldPolicy(session_marker="💍")
FOX = HeraldPolicy(session_marker="🦊", conclusion_is_sticky=True, has_session_start_parameter=True)


class Herald:
    """
    Writes status messages to stdout with a prefix telling, at a glance, whether
    a line opens a session, continues it, carries an error, or concludes it.

    Instances are cheap and hold per-invocation state; create one per command run.
    Not thread-safe.
    """

    def __init__(self, policy: HeraldPolicy = RING, file: Optional[IO[str]] = None):
        self.policy = policy
        self._file = file
        self._is_first_line = True
        self._had_conclusion = False

    @classmethod
    def ring(cls, file: Optional[IO[str]] = None) -> "Herald":
        return cls(RING, file=file)

    @classmethod
    def fox(cls, file: Optional[IO[str]] = None) -> "Herald":
        return cls(FOX, file=file)

    def reset(self) -> None:
        """Starts a new session: the next message is rendered as if nothing was printed yet."""
        self._is_first_line = True
        self._had_conclusion = False

    def declare(
        self,
        message: str,
        as_error: bool = False,
        is_session_start: bool = False,
        as_conclusion: bool = False,
    ) -> None:
        """
        Prints a message, one output line per line of the message.

        Only the first line carries the session/continuation/error prefix. Every
        following line uses the sub-continuation prefix.

        Args:
            message: The text to print. May contain line breaks.
            as_error: Adds the error marker to the first line.
            is_session_start: Resets state and opens a new session with this message.
                Only valid for policies with has_session_start_parameter.
            as_conclusion: Renders the first line with the session marker.

        Raises:
            ValueError: If is_session_start is used with a policy that has no session-start parameter.
        """
        if is_session_start and not self.policy.has_session_start_parameter:
            raise ValueError("This herald opens sessions with reset(), not is_session_start.")

        if is_session_start:
            self.reset()

        lines = LINE_BREAK.split(message)
        first_prefix = self._first_line_prefix(as_error, is_session_start, as_conclusion)
        self._write([first_prefix] + [SUB_CONTINUATION_MARKER] * (len(lines) - 1), lines)

        self._is_first_line = False
        if self.policy.conclusion_is_sticky and as_conclusion and not self._had_conclusion:
            self._had_conclusion = True

    def begin(self, message: str) -> None:
        """Opens a new session with message, the way this herald's policy opens sessions."""
        if self.policy.has_session_start_parameter:
            self.declare(message, is_session_start=True)
        else:
            self.reset()
            self.declare(message)

    def warn(self, message: str) -> None:
        self.declare(message, as_error=True)

    def raw(self, message: str) -> None:
        """Outputs text verbatim, e.g. commands the user should be able to copy and paste."""
        click.echo(message, file=self._file)

    def _first_line_prefix(self, as_error: bool, is_session_start: bool, as_conclusion: bool) -> str:
        if is_session_start:
            marker = self.policy.session_marker
        elif self.policy.conclusion_is_sticky and self._had_conclusion:
            return CONTINUATION_MARKER
        elif as_conclusion or (self._is_first_line and not self.policy.has_session_start_parameter):
            marker = self.policy.session_marker
        else:
            marker = CONTINUATION_MARKER
        return f"{marker} {ERROR_MARKER}" if as_error else marker

    def _write(self, prefixes: List[str], lines: List[str]) -> None:
        for prefix, line in zip(prefixes, lines):
            click.echo(f"{prefix} {line}", file=self._file)
