"""
Batch parsing - parse many independent files on a thread pool.

Each file gets its own GenericParser, so no parser state is shared between
threads. Results come back keyed by path; completion order is not defined.

Usage:
    from pdxtree.parser.batch import parse_files

    results = parse_files(sorted(Path("history/provinces").glob("*.txt")))
    for path, result in results.items():
        if result.success:
            owner = result.root.get_value("owner")

A file that cannot be read or decoded does not abort the batch: its
BatchResult carries the exception and an empty root.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pdxtree.config import ParserConfig
from pdxtree.interning import StringPool
from pdxtree.parser.encoding import ScriptDecodeError
from pdxtree.parser.metrics import ParsingMetrics
from pdxtree.parser.parser import GenericParser
from pdxtree.parser.tree import ObjectNode, create_object

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Result of parsing one file in a batch."""
    path: Path
    root: ObjectNode
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: ParsingMetrics = field(default_factory=ParsingMetrics)
    exception: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.exception is None and not self.errors


def _parse_one(path: Path, with_includes: bool, config: ParserConfig,
               string_pool: Optional[StringPool]) -> BatchResult:
    parser = GenericParser(config=config, string_pool=string_pool)
    try:
        if with_includes:
            root = parser.parse_file_with_includes(path)
        else:
            root = parser.parse_file(path)
    except (OSError, ScriptDecodeError) as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return BatchResult(path=path, root=create_object("root"), exception=e)

    return BatchResult(
        path=path,
        root=root,
        errors=parser.errors,
        warnings=parser.warnings,
        metrics=parser.metrics,
    )


def parse_files(
    paths: Iterable[Union[str, Path]],
    workers: Optional[int] = None,
    with_includes: bool = False,
    config: Optional[ParserConfig] = None,
    string_pool: Optional[StringPool] = None,
) -> Dict[Path, BatchResult]:
    """
    Parse files concurrently.

    Args:
        paths: Files to parse. Duplicates are parsed once.
        workers: Thread count (default: config.batch_workers)
        with_includes: Expand @include directives before parsing
        config: Parser configuration shared by every worker
        string_pool: Optional pool shared by every worker's lexer

    Returns:
        Dict mapping each path to its BatchResult
    """
    config = config or ParserConfig.defaults()
    unique_paths = list(dict.fromkeys(Path(p) for p in paths))
    if not unique_paths:
        return {}

    workers = workers or config.batch_workers
    results: Dict[Path, BatchResult] = {}

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pdxtree-parse") as executor:
        futures = {
            executor.submit(_parse_one, path, with_includes, config, string_pool): path
            for path in unique_paths
        }
        for future in as_completed(futures):
            result = future.result()
            results[result.path] = result

    failed = sum(1 for r in results.values() if not r.success)
    logger.info(f"Parsed {len(results)} files with {workers} workers ({failed} with errors)")
    return results
