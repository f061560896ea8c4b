# audio_annote/persistence.py
from __future__ import annotations

import json
import os
import tempfile
from logging import getLogger
from typing import Dict, Optional

from .document import AnnotationDocument, HydrationReport
from .domain import AnnotatorConfig

logger = getLogger(__name__)


# Filenames (within root dir)
ROOT_CONFIG_FILENAME = "config.json"
ANNOTATION_SUFFIX = ".annotations.json"


# -----------------------------
# Atomic file helpers
# -----------------------------

def _atomic_write_text(path: str, text: str, encoding: str = "utf-8") -> None:
    d = os.path.dirname(os.path.abspath(path))
    os.makedirs(d, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=d)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def _atomic_write_json(path: str, payload: Dict) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    _atomic_write_text(path, text + "\n")


def _read_json(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# -----------------------------
# Root config (root/config.json)
# -----------------------------

def config_path(root_dir: str) -> str:
    return os.path.join(root_dir, ROOT_CONFIG_FILENAME)


def load_config(root_dir: Optional[str]) -> Optional[AnnotatorConfig]:
    """
    Loads <root_dir>/config.json.

    If missing or invalid, returns None (caller should use defaults).
    """
    if not root_dir:
        return None
    path = config_path(root_dir)
    if not os.path.exists(path):
        return None
    try:
        data = _read_json(path)
    except (OSError, ValueError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: not a JSON object", path)
        return None
    return AnnotatorConfig.from_dict(data)


def save_config(cfg: AnnotatorConfig, root_dir: str) -> str:
    """
    Saves config to <root_dir>/config.json atomically.
    """
    if not root_dir:
        raise ValueError("root_dir is required")
    path = config_path(root_dir)
    _atomic_write_json(path, cfg.to_dict())
    logger.info("saved config to %s", path)
    return path


# -----------------------------
# Annotation documents
# -----------------------------

def default_document_path(audio_path: str) -> str:
    """<dir>/<audio stem>.annotations.json next to the audio file."""
    base = os.path.splitext(audio_path)[0]
    return base + ANNOTATION_SUFFIX


def save_document(doc: AnnotationDocument, path: str) -> None:
    if not path:
        raise ValueError("document path is required")
    payload = doc.to_dict()
    _atomic_write_json(path, payload)
    logger.info("saved %d annotation entr(ies) to %s", len(payload["result"]), path)


def load_document(doc: AnnotationDocument, path: str) -> HydrationReport:
    """
    Hydrate ``doc`` from a document file. Raises OSError/ValueError when the
    file itself cannot be read or parsed; bad entries inside a readable file
    are reported in the returned HydrationReport instead.
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: document must be a JSON object")
    report = doc.from_dict(data)
    logger.info("loaded %s (%d skipped)", path, len(report.skipped))
    return report
