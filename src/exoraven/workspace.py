"""
Workspace: open documents and batches of files.

DocumentStore keeps one text snapshot per open document and memoizes its
analysis until the next change. analyze_paths checks many files at once
on a thread pool; documents share nothing, so no coordination is needed.

Usage:
    store = DocumentStore()
    store.open("file:///story.exo", text)
    result = store.get("file:///story.exo")
    store.update("file:///story.exo", new_text)   # memo dropped here

    for report in analyze_paths([Path("stories")]):
        print(report.path, len(report.result.diagnostics))
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from exoraven.analysis import AnalysisResult, analyze_file, analyze_text
from exoraven.config import AnalyzerConfig
from exoraven.errors import AnalysisError

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    text: str
    version: int
    result: Optional[AnalysisResult] = None


class DocumentStore:
    """
    Open documents keyed by URI.

    update() and close() drop the memoized result before returning, so a
    get() that starts afterwards never sees analysis of the old text. A
    get() racing with an update() may return the older snapshot's result,
    but that result is never cached over the newer text.
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def open(self, uri: str, text: str) -> None:
        with self._lock:
            self._entries[uri] = _Entry(text=text, version=0)

    def update(self, uri: str, text: str) -> None:
        """Replace a document's text; opens it if unknown."""
        with self._lock:
            entry = self._entries.get(uri)
            version = entry.version + 1 if entry else 0
            self._entries[uri] = _Entry(text=text, version=version)

    def close(self, uri: str) -> None:
        with self._lock:
            self._entries.pop(uri, None)

    def __contains__(self, uri: str) -> bool:
        with self._lock:
            return uri in self._entries

    @property
    def uris(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def text(self, uri: str) -> str:
        with self._lock:
            return self._require(uri).text

    def get(self, uri: str) -> AnalysisResult:
        """Analysis of the document's current text, computed at most once per version."""
        with self._lock:
            entry = self._require(uri)
            if entry.result is not None:
                return entry.result
            text, version = entry.text, entry.version

        # Analysis runs outside the lock; other documents stay available
        result = analyze_text(text, self.config, uri)

        with self._lock:
            current = self._entries.get(uri)
            if current is not None and current.version == version and current.result is None:
                current.result = result
            elif current is not None and current.version == version:
                result = current.result
        return result

    def _require(self, uri: str) -> _Entry:
        entry = self._entries.get(uri)
        if entry is None:
            raise KeyError(f"Document not open: {uri}")
        return entry


@dataclass
class FileReport:
    """Outcome of analyzing one file: a result, or the reason it failed."""
    path: Path
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def expand_paths(paths: Iterable[Path], patterns: Iterable[str]) -> List[Path]:
    """Files named directly, plus matching files under named directories."""
    patterns = list(patterns)
    found: List[Path] = []
    seen = set()

    for path in paths:
        path = Path(path)
        if path.is_dir():
            candidates = sorted({p for pattern in patterns for p in path.rglob(pattern) if p.is_file()})
        else:
            candidates = [path]
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                found.append(candidate)

    return found


def analyze_paths(paths: Iterable[Path], config: Optional[AnalyzerConfig] = None,
                  workers: Optional[int] = None) -> List[FileReport]:
    """
    Analyze files in parallel.

    Directories are expanded with the configured file patterns. Reports
    come back in the order the files were found, whatever order the
    threads finish in.
    """
    config = config or AnalyzerConfig.from_dict({})
    files = expand_paths(paths, config.file_patterns)
    workers = workers or config.workers

    logger.info(f"Analyzing {len(files)} files with {workers} workers")

    def run(path: Path) -> FileReport:
        try:
            return FileReport(path, result=analyze_file(path, config))
        except AnalysisError as e:
            logger.warning(str(e))
            return FileReport(path, error=str(e))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="exoraven") as executor:
        return list(executor.map(run, files))
