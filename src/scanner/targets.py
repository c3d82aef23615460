"""Configured scan targets — built-in defaults or a JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from src.scanner.browser.models import Target

logger = logging.getLogger(__name__)

DEFAULT_TARGETS: tuple[Target, ...] = (
    Target(
        url="https://www.lamacro.ar/variables",
        name="Variables económicas, monetarias y cambiarias del Banco Central de la República Argentina.",
        keywords=(
            "dólar",
            "inflación",
            "tasa de interés",
            "Reservas Internacionales",
            "Tipo de cambio mayorista",
        ),
    ),
)

_TARGET_LIST = TypeAdapter(list[Target])


def load_targets(path: str | Path | None = None) -> list[Target]:
    """Return targets from *path* (a JSON array of objects), or the defaults.

    Raises ``pydantic.ValidationError`` when an entry lacks ``url`` or ``name``.
    """
    if not path:
        return list(DEFAULT_TARGETS)

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    targets = _TARGET_LIST.validate_python(raw)
    logger.info("targets loaded", extra={"path": str(path), "target_count": len(targets)})
    return targets


def select_targets(targets: list[Target], names: list[str] | None) -> list[Target]:
    """Keep only targets whose name is in *names*, preserving configured order."""
    if not names:
        return list(targets)
    wanted = set(names)
    return [t for t in targets if t.name in wanted]
