"""
@include preprocessing.

A line of the form

    @include "common/shared_modifiers.txt"

is replaced with the content of the named file before tokenization. The
included content is itself preprocessed, so includes nest. Relative paths
resolve against the directory of the including file.

Two guards stop runaway expansion: a depth limit (default 10) and a stack
of files currently being expanded, which detects cycles such as a.txt
including b.txt including a.txt.

By default a failing include is reported through ``on_error`` and the
directive expands to nothing, so the rest of the document still parses.
With ``strict=True`` the IncludeError propagates instead.
"""

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Union

from pdxtree.parser.encoding import (
    DEFAULT_LEGACY_ENCODING,
    ScriptDecodeError,
    read_script_text,
)
from pdxtree.parser.metrics import ParsingMetrics, PerformanceTimer

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 10

_DIRECTIVE_RE = re.compile(r'^@include(?=\s|["\']|$)(.*)$', re.IGNORECASE)
_QUOTED_PATH_RE = re.compile(r'^(["\'])(.*?)\1')


def _directive_path(argument: str) -> str:
    """Path named by a directive's argument, without any trailing # comment."""
    argument = argument.strip()
    quoted = _QUOTED_PATH_RE.match(argument)
    if quoted:
        return quoted.group(2).strip()
    return argument.split('#', 1)[0].strip().strip('"\'')


class IncludeError(Exception):
    """Base class for include expansion failures."""
    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class IncludeCycleError(IncludeError):
    """A file includes itself, directly or through other files."""
    def __init__(self, path: Path, stack: List[Path]):
        self.stack = list(stack)
        chain = " -> ".join(str(p) for p in [*stack, path])
        super().__init__(f"Circular include detected: {path} ({chain})", path)


class IncludeDepthError(IncludeError):
    """Includes nest deeper than the configured limit."""
    def __init__(self, path: Path, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Maximum include depth ({max_depth}) exceeded at {path}", path)


class IncludeNotFoundError(IncludeError):
    """The include target does not exist."""
    def __init__(self, path: Path):
        super().__init__(f"Include file not found: {path}", path)


class IncludePreprocessor:
    """
    Expands @include directives in script text.

    One instance may be reused for several documents, but not concurrently:
    the in-progress stack is per instance.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
        legacy_encoding: str = DEFAULT_LEGACY_ENCODING,
        on_error: Optional[Callable[[str], None]] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        metrics: Optional[ParsingMetrics] = None,
        strict: bool = False,
    ):
        self.max_depth = max_depth
        self.legacy_encoding = legacy_encoding
        self.on_error = on_error
        self.on_warning = on_warning
        self.metrics = metrics
        self.strict = strict
        self._stack: List[Path] = []
        self._depth = 0

    def resolve(self, include_path: str, current_path: Optional[Union[str, Path]]) -> Path:
        """Resolve an include target to an absolute path."""
        include_path = include_path.strip().strip('"\'')
        target = Path(include_path)
        if target.is_absolute():
            return target.resolve()

        if current_path:
            base_dir = Path(current_path).resolve().parent
        else:
            base_dir = Path.cwd()
        return (base_dir / target).resolve()

    def expand_file(self, path: Union[str, Path]) -> str:
        """Read ``path`` and expand every include it contains."""
        content = read_script_text(path, self.legacy_encoding)
        return self.expand(content, path)

    def expand(self, content: str, current_path: Optional[Union[str, Path]] = None) -> str:
        """Return ``content`` with every @include directive replaced."""
        pushed = False
        if current_path is not None:
            resolved = Path(current_path).resolve()
            if resolved not in self._stack:
                self._stack.append(resolved)
                pushed = True

        try:
            result = []
            for line in content.splitlines():
                match = _DIRECTIVE_RE.match(line.strip())
                if not match:
                    result.append(line)
                    continue

                include_path = _directive_path(match.group(1))
                if not include_path:
                    self._warn(f"Empty include path in directive: {line.strip()}")
                    result.append(line)
                    continue

                included = self._include(include_path, current_path)
                result.append(f"# Included from: {include_path}")
                result.append(included)
                result.append(f"# End include: {include_path}")
            return "\n".join(result)
        finally:
            if pushed:
                self._stack.pop()

    def _include(self, include_path: str, current_path: Optional[Union[str, Path]]) -> str:
        try:
            return self._load(include_path, current_path)
        except IncludeError as e:
            if self.strict:
                raise
            self._error(str(e))
            return ""

    def _load(self, include_path: str, current_path: Optional[Union[str, Path]]) -> str:
        resolved = self.resolve(include_path, current_path)

        if resolved in self._stack:
            raise IncludeCycleError(resolved, self._stack)
        if self._depth >= self.max_depth:
            raise IncludeDepthError(resolved, self.max_depth)
        if not resolved.is_file():
            raise IncludeNotFoundError(resolved)

        self._depth += 1
        try:
            with PerformanceTimer(lambda elapsed: self._record_timing(resolved, elapsed)):
                try:
                    content = read_script_text(resolved, self.legacy_encoding)
                except (OSError, ScriptDecodeError) as e:
                    raise IncludeError(f"Error processing include '{include_path}': {e}", resolved) from e
                expanded = self.expand(content, resolved)
        finally:
            self._depth -= 1

        if self.metrics is not None:
            self.metrics.increment("includes_processed")
        logger.debug(f"Included {resolved}")
        return expanded

    def _record_timing(self, path: Path, elapsed: float) -> None:
        if self.metrics is not None:
            self.metrics.custom_timings[f"include:{path.name}"] = elapsed

    def _error(self, message: str) -> None:
        logger.warning(message)
        if self.on_error is not None:
            self.on_error(message)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self.on_warning is not None:
            self.on_warning(message)


def expand_includes(content: str, current_path: Optional[Union[str, Path]] = None, **kwargs) -> str:
    """One-shot helper around IncludePreprocessor.expand()."""
    return IncludePreprocessor(**kwargs).expand(content, current_path)
