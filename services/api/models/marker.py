# services/api/models/marker.py
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

logger = logging.getLogger(__name__)

# Marker geometry is in PERCENT (0..100) of the schematic's rendered box,
# so a marker stays put no matter how large the image is drawn.
POS_MIN = 0.0
POS_MAX = 100.0
SIZE_MIN = 6.0
SIZE_MAX = 80.0
DEFAULT_SIZE = 12.0

KIND_VARIABLE = "variavel"   # dropdown bound to a technical variable
KIND_NUMBER = "numero"       # numeric entry
KIND_TOGGLE = "toggle"       # single-select toggle
RENDER_KINDS = (KIND_VARIABLE, KIND_NUMBER, KIND_TOGGLE)

# Resize handles: which dimension they touch and in which direction
# a positive pointer delta grows it.
HANDLES: Dict[str, Tuple[str, int]] = {
  "e": ("width", 1),
  "w": ("width", -1),
  "s": ("height", 1),
  "n": ("height", -1),
}


def _gen_id() -> str:
  return f"mk-{uuid4().hex[:10]}"


def _safe_float(val: Any) -> Optional[float]:
  try:
    if val is None:
      return None
    s = str(val).strip()
    if not s:
      return None
    f = float(s)
  except (TypeError, ValueError):
    return None
  # NaN / infinity parse from stored JSON but are not coordinates
  return f if math.isfinite(f) else None


def _safe_int(val: Any) -> Optional[int]:
  f = _safe_float(val)
  return int(f) if f is not None else None


def clamp(value: float, lo: float, hi: float) -> float:
  return max(lo, min(hi, value))


def clamp_position(value: float) -> float:
  return clamp(value, POS_MIN, POS_MAX)


def clamp_size(value: float) -> float:
  return clamp(value, SIZE_MIN, SIZE_MAX)


# ---------- pointer geometry ----------

@dataclass(frozen=True)
class Rect:
  """Measured on-screen box of the reference image (pixels)."""
  left: float
  top: float
  width: float
  height: float

  @property
  def is_degenerate(self) -> bool:
    return self.width <= 0 or self.height <= 0


def pointer_to_percent(client_x: float, client_y: float, rect: Optional[Rect]) -> Optional[Tuple[float, float]]:
  """
  Convert a pointer position to percent-of-image coordinates.

  Returns None when the image box is unavailable (not rendered yet,
  collapsed to zero size, ...); callers skip the update in that case.
  """
  if rect is None or rect.is_degenerate:
    return None
  x = (client_x - rect.left) / rect.width * 100.0
  y = (client_y - rect.top) / rect.height * 100.0
  return clamp_position(x), clamp_position(y)


# ---------- marker ----------

@dataclass
class Marker:
  """
  One numbered annotation placed over a family's schematic image.

  `variable_key` is a weak reference into the technical variable
  registry: it may point to a variable that was later deactivated.
  """

  id: str = field(default_factory=_gen_id)
  x: float = 50.0
  y: float = 50.0
  width: float = DEFAULT_SIZE
  height: float = DEFAULT_SIZE
  label: str = ""
  variable_key: str = ""
  render_kind: str = KIND_VARIABLE
  number: int = 1

  def clamp(self) -> "Marker":
    self.x = clamp_position(self.x)
    self.y = clamp_position(self.y)
    self.width = clamp_size(self.width)
    self.height = clamp_size(self.height)
    return self

  @classmethod
  def from_raw(cls, row: Dict[str, Any]) -> "Marker":
    """
    Build from a persisted dict. Field names follow the stored JSON
    (`variavel`, `tipo`, `numero`); `key` is accepted as an older alias
    of `variavel`. Missing id / numero are left for the collection to fill.
    """
    kind = str(row.get("tipo") or KIND_VARIABLE)
    if kind not in RENDER_KINDS:
      kind = KIND_VARIABLE

    x = _safe_float(row.get("x"))
    y = _safe_float(row.get("y"))
    w = _safe_float(row.get("width"))
    h = _safe_float(row.get("height"))

    marker = cls(
      id=str(row.get("id") or ""),
      x=x if x is not None else 50.0,
      y=y if y is not None else 50.0,
      width=w if w is not None else DEFAULT_SIZE,
      height=h if h is not None else DEFAULT_SIZE,
      label=str(row.get("label") or ""),
      variable_key=str(row.get("variavel") or row.get("key") or ""),
      render_kind=kind,
      number=_safe_int(row.get("numero")) or 0,
    )
    return marker.clamp()

  def to_raw(self) -> Dict[str, Any]:
    return {
      "id": self.id,
      "x": self.x,
      "y": self.y,
      "width": self.width,
      "height": self.height,
      "label": self.label,
      "variavel": self.variable_key,
      "tipo": self.render_kind,
      "numero": self.number,
    }


# ---------- collection ----------

class MarkerCollection:
  """
  Ordered, exclusively-owned set of markers for one family.

  After every mutation the sequence numbers are exactly 1..N.
  """

  def __init__(self, markers: Optional[Iterable[Marker]] = None):
    self._markers: List[Marker] = list(markers or [])

  def __iter__(self):
    return iter(self._markers)

  def __len__(self) -> int:
    return len(self._markers)

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, MarkerCollection):
      return NotImplemented
    return self._markers == other._markers

  def __repr__(self) -> str:
    return f"MarkerCollection({self._markers!r})"

  @property
  def markers(self) -> List[Marker]:
    return list(self._markers)

  def get(self, marker_id: str) -> Optional[Marker]:
    return next((m for m in self._markers if m.id == marker_id), None)

  def _require(self, marker_id: str) -> Marker:
    marker = self.get(marker_id)
    if marker is None:
      raise KeyError(f"Marker not found: {marker_id}")
    return marker

  def _new_id(self) -> str:
    taken = {m.id for m in self._markers}
    new_id = _gen_id()
    while new_id in taken:
      new_id = _gen_id()
    return new_id

  def next_number(self) -> int:
    return max((m.number for m in self._markers), default=0) + 1

  # --------------------
  # Mutations
  # --------------------
  def add(
    self,
    x: float,
    y: float,
    variable_key: str,
    *,
    label: str = "",
    render_kind: str = KIND_VARIABLE,
  ) -> Marker:
    if render_kind not in RENDER_KINDS:
      raise ValueError(f"Unknown render kind: {render_kind}")
    marker = Marker(
      id=self._new_id(),
      x=x,
      y=y,
      width=DEFAULT_SIZE,
      height=DEFAULT_SIZE,
      label=label,
      variable_key=variable_key,
      render_kind=render_kind,
      number=self.next_number(),
    ).clamp()
    self._markers.append(marker)
    return marker

  def remove(self, marker_id: str) -> Marker:
    marker = self._require(marker_id)
    self._markers.remove(marker)
    for m in self._markers:
      if m.number > marker.number:
        m.number -= 1
    self._compact()
    return marker

  def move(self, marker_id: str, x: float, y: float) -> Marker:
    marker = self._require(marker_id)
    marker.x = clamp_position(x)
    marker.y = clamp_position(y)
    return marker

  def resize(self, marker_id: str, handle: str, delta: float) -> Marker:
    """Grow/shrink one dimension by `delta` percent along the handle's axis."""
    if handle not in HANDLES:
      raise ValueError(f"Unknown resize handle: {handle}")
    marker = self._require(marker_id)
    attr, sign = HANDLES[handle]
    setattr(marker, attr, clamp_size(getattr(marker, attr) + sign * delta))
    return marker

  def set_size(self, marker_id: str, width: Optional[float] = None, height: Optional[float] = None) -> Marker:
    marker = self._require(marker_id)
    if width is not None:
      marker.width = clamp_size(width)
    if height is not None:
      marker.height = clamp_size(height)
    return marker

  def update(
    self,
    marker_id: str,
    *,
    label: Optional[str] = None,
    variable_key: Optional[str] = None,
    render_kind: Optional[str] = None,
  ) -> Marker:
    marker = self._require(marker_id)
    if render_kind is not None:
      if render_kind not in RENDER_KINDS:
        raise ValueError(f"Unknown render kind: {render_kind}")
      marker.render_kind = render_kind
    if label is not None:
      marker.label = label
    if variable_key is not None:
      marker.variable_key = variable_key
    return marker

  def _compact(self) -> None:
    # Stable sort keeps insertion order for equal numbers.
    self._markers.sort(key=lambda m: m.number)
    for idx, m in enumerate(self._markers, start=1):
      m.number = idx

  # --------------------
  # Registry cross-checks
  # --------------------
  def variable_keys(self) -> List[str]:
    seen: List[str] = []
    for m in self._markers:
      if m.variable_key and m.variable_key not in seen:
        seen.append(m.variable_key)
    return seen

  def unresolved_keys(self, registry) -> List[str]:
    return [k for k in self.variable_keys() if registry.resolve(k) is None]

  # --------------------
  # Conversions – persisted JSON
  # --------------------
  @classmethod
  def from_raw(cls, raw: Any) -> "MarkerCollection":
    """
    Hydrate from the family record's stored field.

    Accepted shapes:
      - None / "" → empty
      - JSON text of any of the shapes below (malformed → empty)
      - a bare list of marker dicts
      - a wrapper dict with the list under `marcadores` or `markers`
    """
    if raw is None:
      return cls()

    if isinstance(raw, (bytes, bytearray)):
      raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
      if not raw.strip():
        return cls()
      try:
        raw = json.loads(raw)
      except json.JSONDecodeError:
        logger.warning("Ignoring malformed marker JSON (%d chars)", len(raw))
        return cls()

    if isinstance(raw, dict):
      raw = raw.get("marcadores", raw.get("markers"))

    if not isinstance(raw, list):
      return cls()

    collection = cls()
    taken: set = set()
    for position, row in enumerate(raw, start=1):
      if not isinstance(row, dict):
        continue
      marker = Marker.from_raw(row)
      if not marker.id or marker.id in taken:
        marker.id = collection._new_id()
      if marker.number <= 0:
        marker.number = position
      taken.add(marker.id)
      collection._markers.append(marker)

    collection._compact()
    return collection

  def to_raw(self) -> List[Dict[str, Any]]:
    return [m.to_raw() for m in self._markers]

  def to_json(self) -> str:
    return json.dumps(self.to_raw(), ensure_ascii=False)
