"""Map identifiers echoed by the image judge back to board cell ids."""

from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import CELL_ID_PREFIX
from ..core.models import Cell
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


def resolve_cell_id(
    candidate: Optional[str],
    cells: Sequence[Cell],
    *,
    normalize_separator: bool = False,
) -> Optional[str]:
    """Return the canonical cell id for ``candidate`` or ``None``.

    The judge is asked for a cell id but sometimes answers with the subject
    text instead. Anything starting with ``"cell"`` is trusted as an id and
    returned untouched; everything else is looked up by exact subject or id.
    When two cells share a subject the first one in ``cells`` wins.

    ``normalize_separator`` rewrites the legacy ``cell-N`` spelling to
    ``cell_N`` before returning it.
    """

    if not candidate:
        return None

    if candidate.startswith(CELL_ID_PREFIX):
        if normalize_separator and candidate.startswith(f"{CELL_ID_PREFIX}-"):
            normalized = f"{CELL_ID_PREFIX}_" + candidate[len(CELL_ID_PREFIX) + 1:]
            LOGGER.debug("Normalized cell id %r to %r", candidate, normalized)
            return normalized
        return candidate

    matches = [cell for cell in cells if cell.subject == candidate or cell.id == candidate]
    if not matches:
        LOGGER.debug(
            "No cell matches %r among %d candidates", candidate, len(cells)
        )
        return None
    if len(matches) > 1:
        LOGGER.debug(
            "Subject %r is ambiguous (%s); using %s",
            candidate,
            ", ".join(cell.id for cell in matches),
            matches[0].id,
        )
    LOGGER.debug("Resolved %r to %s by subject", candidate, matches[0].id)
    return matches[0].id


def get_cell_subject(cell_id: Optional[str], cells: Sequence[Cell]) -> Optional[str]:
    if not cell_id:
        return None
    for cell in cells:
        if cell.id == cell_id:
            return cell.subject
    return None
