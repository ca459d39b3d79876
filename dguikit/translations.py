"""Locate compiled translation files for a list of fallback locales."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

_SUFFIX = ".qm"
_SUBDIR = "translations"


def _locale_name(locale: str) -> str:
    """Normalise a locale such as ``en-US.UTF-8`` to ``en_US``."""
    name = locale.strip()
    for separator in (".", "@"):
        name = name.split(separator, 1)[0]
    return name.replace("-", "_")


def _is_english(locale_name: str) -> bool:
    return locale_name.split("_", 1)[0].lower() == "en"


def translation_candidates(file_name: str, locale: str) -> list[str]:
    """Base names to try for ``locale``: full locale name first, then its language.

    For ``app`` and ``zh_CN`` this gives ``app_zh_CN`` then ``app_zh``.
    """
    name = _locale_name(locale)
    candidates = [f"{file_name}_{name}"]
    parts = [part for part in name.split("_") if part]
    if parts:
        candidates.append(f"{file_name}_{parts[0]}")
    return candidates


def find_translation(
    file_name: str,
    translate_dirs: Iterable[str | os.PathLike[str]],
    locales: Iterable[str],
    app_dir: str | os.PathLike[str] | None = None,
    cwd: str | os.PathLike[str] | None = None,
) -> tuple[Path, str] | None:
    """Find the first translation file for ``file_name``.

    Directories are searched in the given order, followed by the
    ``translations`` directories under ``app_dir`` and ``cwd``. Returns the
    path of the found file without its ``.qm`` suffix together with the
    locale name it was found for, or None when nothing matches.
    """
    if app_dir is None:
        app_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else Path.cwd()
    if cwd is None:
        cwd = Path.cwd()

    dirs = [Path(d) for d in translate_dirs]
    dirs += [Path(app_dir) / _SUBDIR, Path(cwd) / _SUBDIR]

    missing: list[str] = []
    for locale in locales:
        name = _locale_name(locale)
        for candidate in translation_candidates(file_name, locale):
            for directory in dirs:
                path = directory / candidate
                if path.with_name(path.name + _SUFFIX).is_file():
                    logger.debug("load translate %s", path)
                    return path, name
            # English needs no translation, so its absence is not reported.
            if not _is_english(name):
                missing.append(candidate + _SUFFIX)

    if missing:
        logger.warning("%s can not find qm files %s", file_name, missing)
    return None